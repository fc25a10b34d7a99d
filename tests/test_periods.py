from datetime import date

import pytest

from loans import lifecycle
from periods import ledger
from periods.models import OperatingPeriod
from tests.conftest import ORG, OTHER_ORG
from utils.errors import ConflictError, NotFoundError, StateError, ValidationError


def test_create_period_spans_four_months(app):
    q1 = ledger.create_period(ORG, 2025, 1)
    q3 = ledger.create_period(ORG, 2025, 3)
    assert (q1.start_date, q1.end_date) == (date(2025, 1, 1), date(2025, 4, 30))
    assert (q3.start_date, q3.end_date) == (date(2025, 9, 1), date(2025, 12, 31))
    assert q1.name == "Q1 2025"
    assert q1.months() == [1, 2, 3, 4]
    assert not q1.is_active


@pytest.mark.parametrize("year, quarter", [(2025, 0), (2025, 4), (1999, 1), (2101, 2)])
def test_create_period_rejects_out_of_range(app, year, quarter):
    with pytest.raises(ValidationError):
        ledger.create_period(ORG, year, quarter)


def test_duplicate_quarter_conflicts(app):
    ledger.create_period(ORG, 2025, 2)
    with pytest.raises(ConflictError):
        ledger.create_period(ORG, 2025, 2)
    # another organization may have the same quarter
    assert ledger.create_period(OTHER_ORG, 2025, 2).organization_id == OTHER_ORG


def test_activating_b_leaves_only_b_active(app):
    a = ledger.create_period(ORG, 2025, 1)
    b = ledger.create_period(ORG, 2025, 2)
    other = ledger.create_period(OTHER_ORG, 2025, 1)
    ledger.activate(ORG, a.id)
    ledger.activate(OTHER_ORG, other.id)

    ledger.activate(ORG, b.id)

    active = OperatingPeriod.query.filter_by(organization_id=ORG, is_active=True).all()
    assert [p.id for p in active] == [b.id]
    assert ledger.current_active(ORG).id == b.id
    assert ledger.current_active(OTHER_ORG).id == other.id


def test_activate_is_idempotent_and_checks_tenant(app):
    p = ledger.create_period(ORG, 2025, 1)
    ledger.activate(ORG, p.id)
    assert ledger.activate(ORG, p.id).is_active
    with pytest.raises(NotFoundError):
        ledger.activate(OTHER_ORG, p.id)
    with pytest.raises(NotFoundError):
        ledger.activate(ORG, 9999)


def test_completed_period_cannot_be_reactivated(app):
    p = ledger.create_period(ORG, 2025, 1)
    ledger.activate(ORG, p.id)
    ledger.complete(ORG, p.id)
    assert ledger.current_active(ORG) is None
    with pytest.raises(StateError):
        ledger.activate(ORG, p.id)


def test_containment_and_lookup(app):
    p = ledger.create_period(ORG, 2025, 2)
    assert ledger.contains(p, date(2025, 5, 1))
    assert ledger.contains(p, date(2025, 8, 31))
    assert not ledger.contains(p, date(2025, 9, 1))
    assert ledger.period_for_date(ORG, date(2025, 6, 15)).id == p.id
    assert ledger.period_for_date(ORG, date(2025, 2, 1)) is None


def test_ensure_year_creates_missing_quarters(app):
    ledger.create_period(ORG, 2026, 2)
    created = ledger.ensure_year(ORG, 2026)
    assert sorted(p.quarter_number for p in created) == [1, 3]
    assert ledger.ensure_year(ORG, 2026) == []
    assert [p.quarter_number for p in ledger.list_periods(ORG, 2026)] == [3, 2, 1]


def test_delete_period_refuses_while_referenced(make_member, period):
    member = make_member()
    lifecycle.apply(ORG, member.id, "school_fees_loan", 200, applied_on=date(2025, 3, 5))
    with pytest.raises(ConflictError):
        ledger.delete_period(ORG, period.id)

    spare_id = ledger.create_period(ORG, 2025, 3).id
    ledger.delete_period(ORG, spare_id)
    assert OperatingPeriod.query.filter_by(id=spare_id).first() is None
