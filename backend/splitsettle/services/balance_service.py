"""
Balance aggregation for group settlement.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable

from splitsettle.core.config import settings
from splitsettle.core.utils import NOISE_FLOOR
from splitsettle.models.expense import Expense, SplitType
from splitsettle.services.currency_service import CurrencyService

logger = logging.getLogger(__name__)


def is_shared(expense: Expense) -> bool:
    """Expenses with split type ``none`` are personal and never settled."""
    return expense.split_type != SplitType.NONE


def aggregate_balances(
    member_ids: Iterable[int],
    expenses: Iterable[Expense],
    currency_service: CurrencyService,
) -> Dict[int, Decimal]:
    """
    Calculate each member's net balance in the reference currency.

    net balance = total paid - total owed (positive = owed money by the
    group, negative = owes money to the group). Split amounts are converted
    with the currency of the expense they belong to. Split members outside
    ``member_ids`` are kept; membership is validated when expenses are
    recorded, not here.

    Returned mapping iterates members in ``member_ids`` order, followed by
    any other ids in the order they were first seen.
    """
    balances: Dict[int, Decimal] = {member_id: Decimal(0) for member_id in member_ids}

    for expense in expenses:
        if not is_shared(expense):
            continue

        # Add what payer paid
        paid = currency_service.normalize(expense.amount, expense.currency)
        balances[expense.payer_id] = balances.get(expense.payer_id, Decimal(0)) + paid

        # Subtract what each member owes
        for split in expense.splits:
            owed = currency_service.normalize(split.amount or 0, expense.currency)
            balances[split.member_id] = balances.get(split.member_id, Decimal(0)) - owed

    total = balances_sum(balances)
    if abs(total) > NOISE_FLOOR:
        logger.warning(
            f"Group balances do not sum to zero: {total} {settings.REFERENCE_CURRENCY}"
        )
    if settings.DEBUG:
        logger.debug(f"Net balances: {balances}")

    return balances


def balances_sum(balances: Dict[int, Decimal]) -> Decimal:
    return sum(balances.values(), Decimal(0))
