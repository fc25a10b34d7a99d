from decimal import Decimal

import pytest

from savings import contributions
from savings.models import SavingsEntry
from shareout import settlement
from tests.conftest import ORG
from utils.errors import ConflictError, StateError, ValidationError


@pytest.fixture
def savers(make_member, period):
    members = [make_member(category="B"), make_member(category="B"), make_member(category="C")]
    for m in members:
        contributions.set_target(ORG, m.id, period.id)
    contributions.initiate(ORG, period.id, 1)
    contributions.initiate(ORG, period.id, 2)
    return members


def test_decisions_need_active_shareout(savers, period):
    with pytest.raises(StateError):
        settlement.record_decision(ORG, savers[0].id, period.id, True)


def test_decision_snapshots_balance_and_interest(savers, period):
    settlement.activate_shareout(ORG, period.id)
    assert settlement.activate_shareout(ORG, period.id).shareout_activated

    decision = settlement.record_decision(ORG, savers[0].id, period.id, True)
    assert decision.savings_balance == Decimal("600")
    assert decision.interest_amount == Decimal("30")
    assert decision.payout_amount == Decimal("630")

    with pytest.raises(ConflictError):
        settlement.record_decision(ORG, savers[0].id, period.id, False)
    with pytest.raises(ValidationError):
        settlement.record_decision(ORG, savers[1].id, period.id, "yes")


def test_complete_marks_entries_shared_out(savers, period):
    settlement.activate_shareout(ORG, period.id)
    decision = settlement.record_decision(ORG, savers[0].id, period.id, True)

    settlement.complete(ORG, decision.id, savers[1].id)

    assert decision.shareout_completed
    assert decision.completed_by == savers[1].id
    entries = SavingsEntry.query.filter_by(member_id=savers[0].id).all()
    assert all(e.shared_out and e.shared_out_date for e in entries)
    assert contributions.member_balance(ORG, savers[0].id, period.id) == Decimal("0")
    # other members untouched
    assert contributions.member_balance(ORG, savers[1].id, period.id) == Decimal("600")

    with pytest.raises(StateError):
        settlement.complete(ORG, decision.id)


def test_cannot_complete_when_member_keeps_savings(savers, period):
    settlement.activate_shareout(ORG, period.id)
    decision = settlement.record_decision(ORG, savers[0].id, period.id, False)
    with pytest.raises(StateError):
        settlement.complete(ORG, decision.id)


def test_bulk_complete_is_all_or_nothing(savers, period):
    settlement.activate_shareout(ORG, period.id)
    yes = settlement.record_decision(ORG, savers[0].id, period.id, True)
    no = settlement.record_decision(ORG, savers[1].id, period.id, False)

    with pytest.raises(StateError):
        settlement.bulk_complete(ORG, [yes.id, no.id])

    assert not settlement.get_decision(ORG, yes.id).shareout_completed
    assert SavingsEntry.query.filter_by(shared_out=True).count() == 0


def test_bulk_complete_settles_every_decision(savers, period):
    settlement.activate_shareout(ORG, period.id)
    ids = [settlement.record_decision(ORG, m.id, period.id, True).id for m in savers]

    assert [d.id for d in settlement.list_decisions(ORG, period.id, pending_only=True)] == ids
    done = settlement.bulk_complete(ORG, ids)

    assert all(d.shareout_completed for d in done)
    assert settlement.list_decisions(ORG, period.id, pending_only=True) == []
    assert SavingsEntry.query.filter_by(shared_out=False).count() == 0
    with pytest.raises(ValidationError):
        settlement.bulk_complete(ORG, [])
