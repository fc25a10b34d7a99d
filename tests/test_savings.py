from decimal import Decimal

import pytest

from extensions import db
from savings import contributions
from savings.models import SavingsEntry
from tests.conftest import ORG
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.transactions import atomic


def test_target_defaults_to_category_amount(make_member, period):
    member = make_member(category="B")
    target = contributions.set_target(ORG, member.id, period.id)
    assert target.monthly_target == Decimal("300")


def test_target_is_set_once(make_member, period):
    member = make_member()
    contributions.set_target(ORG, member.id, period.id, 750)
    with pytest.raises(ConflictError):
        contributions.set_target(ORG, member.id, period.id, 800)


def test_target_validation(make_member, period):
    member = make_member(category=None)
    with pytest.raises(ValidationError):
        contributions.set_target(ORG, member.id, period.id)
    with pytest.raises(ValidationError):
        contributions.set_target(ORG, member.id, period.id, 0)
    with pytest.raises(NotFoundError):
        contributions.set_target(ORG, member.id, 9999, 100)


def test_preview_lists_amounts_and_missing_targets(make_member, period):
    a, b, c = make_member(category="A"), make_member(category="C"), make_member(name="No Target")
    contributions.set_target(ORG, a.id, period.id)
    contributions.set_target(ORG, b.id, period.id)

    preview = contributions.preview_initiation(ORG, period.id, 2)
    assert preview["total"] == Decimal("600")
    assert {row["member_id"] for row in preview["entries"]} == {a.id, b.id}
    assert [m["member_id"] for m in preview["missing_targets"]] == [c.id]
    assert SavingsEntry.query.count() == 0


def test_initiate_once_per_month(make_member, period):
    members = [make_member(category="A"), make_member(category="B")]
    make_member(name="Retired", is_active=False)
    for m in members:
        contributions.set_target(ORG, m.id, period.id)

    created = contributions.initiate(ORG, period.id, 1)
    assert len(created) == 2

    with pytest.raises(ConflictError):
        contributions.initiate(ORG, period.id, 1)
    assert SavingsEntry.query.filter_by(month=1).count() == 2

    contributions.initiate(ORG, period.id, 2)
    assert contributions.member_balance(ORG, members[0].id, period.id) == Decimal("1000")
    assert contributions.member_balance(ORG, members[1].id) == Decimal("600")


def test_initiate_needs_active_members(make_member, period):
    make_member(name="Retired", is_active=False)
    for _ in range(2):
        with pytest.raises(ValidationError) as exc:
            contributions.initiate(ORG, period.id, 2)
        assert exc.value.code == "no_active_members"
    assert SavingsEntry.query.count() == 0


def test_initiate_requires_every_target(make_member, period):
    a = make_member()
    make_member()
    contributions.set_target(ORG, a.id, period.id)
    with pytest.raises(ConflictError) as exc:
        contributions.initiate(ORG, period.id, 1)
    assert exc.value.code == "missing_targets"
    assert SavingsEntry.query.count() == 0


def test_month_must_be_inside_period(make_member, period):
    a = make_member()
    contributions.set_target(ORG, a.id, period.id)
    with pytest.raises(ValidationError):
        contributions.initiate(ORG, period.id, 5)
    with pytest.raises(ValidationError):
        contributions.preview_initiation(ORG, period.id, "june")


def test_racing_duplicate_entry_surfaces_as_conflict(make_member, period):
    member = make_member()
    with pytest.raises(ConflictError) as exc:
        with atomic():
            for _ in range(2):
                db.session.add(SavingsEntry(organization_id=ORG, member_id=member.id, period_id=period.id,
                                            amount=Decimal("100"), month=3))
    assert exc.value.code == "duplicate"
    assert SavingsEntry.query.count() == 0


def test_period_summary(make_member, period):
    a = make_member(category="C")
    contributions.set_target(ORG, a.id, period.id)
    contributions.initiate(ORG, period.id, 3)
    summary = contributions.period_summary(ORG, period.id)
    assert summary["targets"] == 1
    assert summary["entries"] == 1
    assert summary["total_saved"] == Decimal("100")
    assert summary["by_month"] == {"1": "0.00", "2": "0.00", "3": "100.00", "4": "0.00"}
