# loans/rules.py
"""
Category x loan-type rules and eligibility checks.

The table is static configuration; nothing here writes to the database.
"""
from collections import namedtuple
from decimal import Decimal
from types import MappingProxyType

from loans.models import ACTIVE_STATUSES, Loan
from utils.dates import REPAYMENT_CUTOFF_DAY
from utils.money import percent_of

CategoryRule = namedtuple(
    "CategoryRule",
    ["category", "loan_type", "min_amount", "max_amount", "interest_rate", "start_month", "max_repayment_months"],
)

LOAN_TYPES = {
    "savings_loan": "Savings Loan",
    "social_fund_loan": "Social Fund Loan",
    "yukon_welfare_loan": "Yukon Welfare Loan",
    "school_fees_loan": "School Fees Loan",
}


def _rule(category, loan_type, lo, hi, rate, start_month, max_months):
    return CategoryRule(category, loan_type, Decimal(lo), Decimal(hi), Decimal(rate), start_month, max_months)


_RULES = {}
for _r in (
    _rule("A", "savings_loan", 2000, 7500, 10, 2, 12),
    _rule("A", "social_fund_loan", 500, 1000, 5, 1, 1),
    _rule("B", "savings_loan", 1000, 5000, 10, 2, 12),
    _rule("B", "social_fund_loan", 300, 500, 5, 1, 1),
    _rule("C", "savings_loan", 300, 500, 10, 1, 12),
    _rule("C", "social_fund_loan", 100, 300, 5, 1, 1),
):
    _RULES[(_r.category, _r.loan_type)] = _r
for _cat in ("A", "B", "C"):
    # same terms for every category
    _RULES[(_cat, "yukon_welfare_loan")] = _rule(_cat, "yukon_welfare_loan", 300, 1000, 10, 3, 1)
    _RULES[(_cat, "school_fees_loan")] = _rule(_cat, "school_fees_loan", 125, 500, 0, 1, 1)

RULES = MappingProxyType(_RULES)

# a member may hold at most one of these at a time
CONFLICTS = MappingProxyType({
    "savings_loan": frozenset({"savings_loan", "yukon_welfare_loan"}),
    "yukon_welfare_loan": frozenset({"savings_loan", "yukon_welfare_loan"}),
    "social_fund_loan": frozenset(),
    "school_fees_loan": frozenset(),
})

MONTHLY_SAVINGS = MappingProxyType({"A": Decimal("500"), "B": Decimal("300"), "C": Decimal("100")})

# percentage split of a monthly contribution
FUND_SPLIT = (
    ("main_savings", Decimal("75")),
    ("social_fund", Decimal("17.5")),
    ("welfare_fund", Decimal("7.5")),
)


def limits_for(category, loan_type):
    return RULES.get((category, loan_type))


def conflicting_types(loan_type):
    return CONFLICTS.get(loan_type, frozenset())


def active_conflict(member_id, loan_type):
    """The member's active loan that blocks ``loan_type``, if any."""
    blocking = conflicting_types(loan_type)
    if not blocking:
        return None
    return Loan.query.filter(
        Loan.member_id == member_id,
        Loan.loan_type.in_(blocking),
        Loan.status.in_(ACTIVE_STATUSES),
    ).first()


def max_repayment_months(loan_type, category, as_of):
    rule = limits_for(category, loan_type)
    if rule is None:
        return 0
    if loan_type != "savings_loan":
        return rule.max_repayment_months

    months = 12 - as_of.month
    if months <= 0:
        # December: only a same-month loan, and only before the cutoff
        months = 1 if as_of.day < REPAYMENT_CUTOFF_DAY else 0
    return min(months, rule.max_repayment_months)


def is_eligible(member, loan_type, as_of):
    if member is None or not member.has_category:
        return False
    rule = limits_for(member.category, loan_type)
    if rule is None:
        return False
    if as_of.month < rule.start_month:
        return False
    return active_conflict(member.id, loan_type) is None


def available_loan_types(member, as_of):
    """Rules the member may apply for right now, with effective month caps."""
    options = []
    if member is None or not member.has_category:
        return options
    for loan_type, label in LOAN_TYPES.items():
        if not is_eligible(member, loan_type, as_of):
            continue
        months = max_repayment_months(loan_type, member.category, as_of)
        if months < 1:
            continue
        rule = limits_for(member.category, loan_type)
        options.append({
            "loan_type": loan_type,
            "label": label,
            "min_amount": str(rule.min_amount),
            "max_amount": str(rule.max_amount),
            "interest_rate": str(rule.interest_rate),
            "max_repayment_months": months,
        })
    return options


def monthly_savings_for(category):
    return MONTHLY_SAVINGS.get(category)


def fund_breakdown(amount):
    """Split a contribution into its funds; the last fund takes rounding cents."""
    parts = {}
    allocated = Decimal("0")
    for name, pct in FUND_SPLIT[:-1]:
        parts[name] = percent_of(amount, pct)
        allocated += parts[name]
    parts[FUND_SPLIT[-1][0]] = percent_of(amount, 100) - allocated
    return parts
