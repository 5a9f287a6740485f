"""
Settlement service: plan generation and the settlement record lifecycle.

Plans are computed from current expense data on every call and never stored.
Settlement records move through ``pending -> verified -> completed``; each
transition is written with a status-guarded UPDATE so that two concurrent
requests cannot both move the same record.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from splitsettle.core.exceptions import Forbidden, InvalidState, NotFound
from splitsettle.models.settlement import Settlement, SettlementStatus
from splitsettle.schemas.settlement import SettlementCreate
from splitsettle.services.balance_service import aggregate_balances, is_shared
from splitsettle.services.currency_service import CurrencyService
from splitsettle.services.debt_service import minimize_transfers
from splitsettle.services.group_service import (
    check_group_access,
    get_group_membership,
    get_members,
    is_group_member,
    list_group_expenses,
)
from splitsettle.services.plan_service import assemble_plan, empty_plan

logger = logging.getLogger(__name__)


def generate_settlement_plan(
    group_id: int,
    actor_id: int,
    db: Session,
    currency_service: CurrencyService,
) -> Dict[str, Any]:
    """
    Calculate the settlement plan for a group using debt minimization.
    Only current members may see the plan.
    """
    group, member_ids, _ = get_group_membership(group_id, db)
    if actor_id not in member_ids:
        raise Forbidden("You are not authorized to view this group's settlement plan")

    expenses = [expense for expense in list_group_expenses(group_id, db) if is_shared(expense)]
    if not expenses:
        return empty_plan(group, currency_service.reference)

    balances = aggregate_balances(member_ids, expenses, currency_service)
    transfers = minimize_transfers(balances)
    members = get_members(member_ids, db)

    logger.info(
        f"Settlement plan for group {group_id}: {len(expenses)} expenses, "
        f"{len(transfers)} transfers"
    )
    return assemble_plan(group, expenses, balances, transfers, members, currency_service)


def _get_group_settlement(group_id: int, settlement_id: int, db: Session) -> Settlement:
    """Read a settlement scoped to its group."""
    settlement = db.query(Settlement).filter(
        Settlement.id == settlement_id,
        Settlement.group_id == group_id
    ).first()
    if not settlement:
        raise NotFound("Settlement not found")
    return settlement


def _transition(
    db: Session,
    settlement: Settlement,
    allowed: Iterable[SettlementStatus],
    values: Dict[str, Any],
    action: str,
) -> Settlement:
    """
    Apply ``values`` only if the stored status is still one of ``allowed``.

    The status check and the write happen in one UPDATE statement; when no
    row matches, another request changed the status first.
    """
    allowed = list(allowed)
    updated = db.query(Settlement).filter(
        Settlement.id == settlement.id,
        Settlement.status.in_(allowed)
    ).update(values, synchronize_session=False)

    if not updated:
        db.rollback()
        db.refresh(settlement)
        current = settlement.status.value
        logger.warning(f"Concurrent {action} rejected for settlement {settlement.id}: status is {current}")
        raise InvalidState(f"Cannot {action} settlement in status '{current}'", current)

    db.commit()
    db.refresh(settlement)
    return settlement


def verify_settlement(
    group_id: int,
    settlement_id: int,
    actor_id: int,
    db: Session,
    notes: Optional[str] = None,
) -> Settlement:
    """Either party confirms that the payment took place."""
    check_group_access(group_id, actor_id, db)
    settlement = _get_group_settlement(group_id, settlement_id, db)

    if actor_id not in (settlement.from_user_id, settlement.to_user_id):
        logger.warning(f"User {actor_id} is not a party to settlement {settlement_id}")
        raise Forbidden("Only the payer or receiver can verify this settlement")

    if settlement.status == SettlementStatus.COMPLETED:
        raise InvalidState("Settlement is already completed", settlement.status.value)

    values = {
        Settlement.status: SettlementStatus.VERIFIED,
        Settlement.verified_by: actor_id,
        Settlement.verified_at: datetime.now(timezone.utc),
    }
    if notes:
        values[Settlement.notes] = notes

    settlement = _transition(
        db, settlement, (SettlementStatus.PENDING, SettlementStatus.VERIFIED), values, "verify"
    )
    logger.info(f"Settlement {settlement_id} verified by user {actor_id}")
    return settlement


def complete_settlement(
    group_id: int,
    settlement_id: int,
    actor_id: int,
    db: Session,
) -> Settlement:
    """Only the receiver marks a verified settlement as completed."""
    check_group_access(group_id, actor_id, db)
    settlement = _get_group_settlement(group_id, settlement_id, db)

    if actor_id != settlement.to_user_id:
        logger.warning(f"User {actor_id} is not the receiver of settlement {settlement_id}")
        raise Forbidden("Only the receiver can mark this settlement as completed")

    if settlement.status != SettlementStatus.VERIFIED:
        raise InvalidState(
            f"Settlement must be verified before it can be completed (status is '{settlement.status.value}')",
            settlement.status.value,
        )

    values = {
        Settlement.status: SettlementStatus.COMPLETED,
        Settlement.completed_at: datetime.now(timezone.utc),
    }
    settlement = _transition(db, settlement, (SettlementStatus.VERIFIED,), values, "complete")
    logger.info(f"Settlement {settlement_id} completed by user {actor_id}")
    return settlement


def create_settlement(
    group_id: int,
    actor_id: int,
    data: SettlementCreate,
    db: Session,
    currency_service: CurrencyService,
) -> Settlement:
    """Record an agreed transfer as a pending settlement."""
    check_group_access(group_id, actor_id, db)

    if actor_id not in (data.from_user_id, data.to_user_id):
        raise Forbidden("Only the payer or receiver can record this settlement")

    for user_id in (data.from_user_id, data.to_user_id):
        if not is_group_member(group_id, user_id, db):
            raise NotFound(f"User {user_id} is not a member of this group")

    currency = data.currency.upper()
    amount_reference = currency_service.to_reference(data.amount, currency)

    settlement = Settlement(
        group_id=group_id,
        from_user_id=data.from_user_id,
        to_user_id=data.to_user_id,
        amount=data.amount,
        currency=currency,
        amount_reference=amount_reference,
        status=SettlementStatus.PENDING,
        notes=data.notes,
    )
    db.add(settlement)
    db.commit()
    db.refresh(settlement)

    logger.info(
        f"Settlement {settlement.id} recorded in group {group_id}: "
        f"{data.from_user_id} -> {data.to_user_id} {data.amount} {currency}"
    )
    return settlement


def get_settlement(group_id: int, settlement_id: int, actor_id: int, db: Session) -> Settlement:
    check_group_access(group_id, actor_id, db)
    return _get_group_settlement(group_id, settlement_id, db)


def get_settlement_history(group_id: int, actor_id: int, db: Session) -> Dict[str, Any]:
    """All settlement records of a group, newest first."""
    group = check_group_access(group_id, actor_id, db)
    settlements: List[Settlement] = db.query(Settlement).filter(
        Settlement.group_id == group_id
    ).order_by(Settlement.created_at.desc(), Settlement.id.desc()).all()

    return {
        "group_id": group.id,
        "group_name": group.name,
        "settlements": settlements,
    }
