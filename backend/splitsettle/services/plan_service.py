"""
Settlement plan assembly: present balances and transfers in each member's
preferred currency.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Sequence

from splitsettle.core.utils import NOISE_FLOOR, round_money
from splitsettle.models.expense import Expense
from splitsettle.models.group import Group
from splitsettle.models.user import User
from splitsettle.services.currency_service import CurrencyService
from splitsettle.services.debt_service import Transfer
from splitsettle.services.group_service import preferred_currency

logger = logging.getLogger(__name__)

PLAN_NOTE = (
    "All calculations are done in {reference}, but amounts are shown in "
    "each member's preferred currency"
)


def member_summary(user: User, reference: str) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "preferred_currency": preferred_currency(user, reference),
    }


def empty_plan(group: Group, reference: str) -> Dict[str, Any]:
    """Plan for a group with no shared expenses."""
    return {
        "message": "No expenses to settle",
        "group_id": group.id,
        "group_name": group.name,
        "total_expenses": 0,
        "total_amount_reference": Decimal("0.00"),
        "reference_currency": reference,
        "balances": {},
        "settlements": [],
        "transaction_count": 0,
    }


def assemble_plan(
    group: Group,
    expenses: Sequence[Expense],
    balances: Mapping[int, Decimal],
    transfers: Sequence[Transfer],
    members: Mapping[int, User],
    currency_service: CurrencyService,
) -> Dict[str, Any]:
    """
    Build the externally visible settlement plan.

    ``expenses`` are the shared expenses the balances were computed from.
    Balances within the noise floor are left out. A transfer naming a member
    missing from ``members`` is dropped and logged rather than failing the
    whole plan.
    """
    reference = currency_service.reference

    settlements: List[Dict[str, Any]] = []
    for transfer in transfers:
        from_user = members.get(transfer.from_user_id)
        to_user = members.get(transfer.to_user_id)

        # Safety check - skip if users not found
        if not from_user or not to_user:
            logger.warning(
                f"Dropping transfer {transfer.from_user_id} -> {transfer.to_user_id} "
                f"in group {group.id}: member not found"
            )
            continue

        from_currency = preferred_currency(from_user, reference)
        to_currency = preferred_currency(to_user, reference)
        settlements.append({
            "from": {
                "user": member_summary(from_user, reference),
                "amount": currency_service.convert(transfer.amount, reference, from_currency),
                "currency": from_currency,
            },
            "to": {
                "user": member_summary(to_user, reference),
                "amount": currency_service.convert(transfer.amount, reference, to_currency),
                "currency": to_currency,
            },
            "amount_reference": transfer.amount,
            "description": f"{from_user.name} pays {to_user.name}",
        })

    balance_summary: Dict[int, Dict[str, Any]] = {}
    for user_id, balance in balances.items():
        if abs(balance) <= NOISE_FLOOR:
            continue
        user = members.get(user_id)
        if not user:
            continue
        currency = preferred_currency(user, reference)
        balance_summary[user_id] = {
            "user": member_summary(user, reference),
            "balance_reference": round_money(balance),
            "balance": currency_service.convert(abs(balance), reference, currency),
            "currency": currency,
            "status": "owed" if balance > 0 else "owes",
        }

    total_reference = sum(
        (currency_service.normalize(expense.amount, expense.currency) for expense in expenses),
        Decimal(0),
    )

    return {
        "message": "Settlement plan generated successfully",
        "group_id": group.id,
        "group_name": group.name,
        "total_expenses": len(expenses),
        "total_amount_reference": round_money(total_reference),
        "reference_currency": reference,
        "balances": balance_summary,
        "settlements": settlements,
        "transaction_count": len(settlements),
        "note": PLAN_NOTE.format(reference=reference),
    }
