"""
Tests for the settlement record lifecycle.
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from splitsettle.core.exceptions import Forbidden, InvalidState, NotFound, UnsupportedCurrency
from splitsettle.models.settlement import Settlement, SettlementStatus
from splitsettle.schemas.settlement import SettlementCreate
from splitsettle.services.settlement_service import (
    _transition,
    complete_settlement,
    create_settlement,
    get_settlement,
    get_settlement_history,
    verify_settlement,
)


@pytest.fixture
def pending(db, trio, currency_service):
    """Bob owes Alice 33.33 USD."""
    group, alice, bob, carol = trio
    data = SettlementCreate(from_user_id=bob.id, to_user_id=alice.id, amount=Decimal("33.33"), currency="usd")
    settlement = create_settlement(group.id, bob.id, data, db, currency_service)
    return settlement


def test_create_settlement(pending, trio):
    group, alice, bob, carol = trio
    assert pending.status == SettlementStatus.PENDING
    assert pending.group_id == group.id
    assert pending.currency == "USD"
    assert pending.amount_reference == Decimal("33.33")
    assert pending.verified_by is None


def test_create_settlement_records_reference_amount(db, trio, currency_service):
    group, alice, bob, carol = trio
    data = SettlementCreate(from_user_id=carol.id, to_user_id=alice.id, amount=Decimal("1000"), currency="INR")

    settlement = create_settlement(group.id, alice.id, data, db, currency_service)

    assert settlement.amount == Decimal("1000")
    assert settlement.amount_reference == Decimal("12.00")


def test_create_settlement_validation(db, trio, make_user, currency_service):
    group, alice, bob, carol = trio
    outsider = make_user("Mallory")

    # Actor must be one of the parties
    with pytest.raises(Forbidden):
        create_settlement(
            group.id, carol.id,
            SettlementCreate(from_user_id=bob.id, to_user_id=alice.id, amount=5), db, currency_service
        )

    # Both parties must be members
    with pytest.raises(NotFound):
        create_settlement(
            group.id, alice.id,
            SettlementCreate(from_user_id=outsider.id, to_user_id=alice.id, amount=5), db, currency_service
        )

    with pytest.raises(UnsupportedCurrency):
        create_settlement(
            group.id, alice.id,
            SettlementCreate(from_user_id=bob.id, to_user_id=alice.id, amount=5, currency="JPY"),
            db, currency_service
        )


def test_verify_by_non_party_is_forbidden(db, pending, trio):
    group, alice, bob, carol = trio
    with pytest.raises(Forbidden):
        verify_settlement(group.id, pending.id, carol.id, db)


def test_verify_by_non_member_is_forbidden(db, pending, trio, make_user):
    group, alice, bob, carol = trio
    outsider = make_user("Mallory")
    with pytest.raises(Forbidden):
        verify_settlement(group.id, pending.id, outsider.id, db)


@pytest.mark.parametrize("party", ["payer", "receiver"])
def test_either_party_can_verify(db, pending, trio, party):
    group, alice, bob, carol = trio
    actor = bob if party == "payer" else alice

    settlement = verify_settlement(group.id, pending.id, actor.id, db, notes="Paid in cash")

    assert settlement.status == SettlementStatus.VERIFIED
    assert settlement.verified_by == actor.id
    assert settlement.verified_at is not None
    assert settlement.notes == "Paid in cash"


def test_complete_pending_is_invalid_state(db, pending, trio):
    group, alice, bob, carol = trio
    with pytest.raises(InvalidState) as exc_info:
        complete_settlement(group.id, pending.id, alice.id, db)
    assert exc_info.value.current_status == "pending"


def test_complete_by_payer_is_forbidden(db, pending, trio):
    group, alice, bob, carol = trio
    verify_settlement(group.id, pending.id, bob.id, db)

    with pytest.raises(Forbidden):
        complete_settlement(group.id, pending.id, bob.id, db)
    with pytest.raises(Forbidden):
        complete_settlement(group.id, pending.id, carol.id, db)


def test_full_lifecycle(db, pending, trio):
    group, alice, bob, carol = trio

    verify_settlement(group.id, pending.id, bob.id, db)
    settlement = complete_settlement(group.id, pending.id, alice.id, db)

    assert settlement.status == SettlementStatus.COMPLETED
    assert settlement.completed_at is not None

    # Completed settlements are immutable
    with pytest.raises(InvalidState) as exc_info:
        verify_settlement(group.id, pending.id, alice.id, db)
    assert exc_info.value.current_status == "completed"
    with pytest.raises(InvalidState):
        complete_settlement(group.id, pending.id, alice.id, db)


def test_reverify_keeps_earlier_notes(db, pending, trio):
    group, alice, bob, carol = trio
    verify_settlement(group.id, pending.id, bob.id, db, notes="Bank transfer")

    settlement = verify_settlement(group.id, pending.id, alice.id, db)

    assert settlement.status == SettlementStatus.VERIFIED
    assert settlement.verified_by == alice.id
    assert settlement.notes == "Bank transfer"


def test_settlement_reads_are_group_scoped(db, pending, trio, make_group):
    group, alice, bob, carol = trio
    other = make_group("Book Club", alice, [bob])

    with pytest.raises(NotFound):
        verify_settlement(other.id, pending.id, bob.id, db)
    with pytest.raises(NotFound):
        get_settlement(other.id, pending.id, bob.id, db)
    with pytest.raises(NotFound):
        verify_settlement(9999, pending.id, bob.id, db)
    with pytest.raises(NotFound):
        verify_settlement(group.id, 9999, bob.id, db)

    assert get_settlement(group.id, pending.id, carol.id, db).id == pending.id


def test_stale_transition_is_rejected(db, pending):
    """Test the status-guarded write refuses when the stored status moved on."""
    values = {
        Settlement.status: SettlementStatus.COMPLETED,
        Settlement.completed_at: datetime.now(timezone.utc),
    }

    with pytest.raises(InvalidState) as exc_info:
        _transition(db, pending, (SettlementStatus.VERIFIED,), values, "complete")

    assert exc_info.value.current_status == "pending"
    db.refresh(pending)
    assert pending.status == SettlementStatus.PENDING
    assert pending.completed_at is None


def test_history_is_member_only_and_newest_first(db, pending, trio, make_user, currency_service):
    group, alice, bob, carol = trio
    second = create_settlement(
        group.id, carol.id,
        SettlementCreate(from_user_id=carol.id, to_user_id=alice.id, amount=Decimal("33.34")),
        db, currency_service
    )

    history = get_settlement_history(group.id, alice.id, db)

    assert history["group_name"] == group.name
    assert [s.id for s in history["settlements"]] == [second.id, pending.id]

    with pytest.raises(Forbidden):
        get_settlement_history(group.id, make_user("Mallory").id, db)
