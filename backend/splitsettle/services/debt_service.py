"""
Debt minimization: turn net balances into payer -> payee transfers.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from splitsettle.core.utils import NOISE_FLOOR, round_money


@dataclass(frozen=True)
class Transfer:
    """Represents a single transfer between members, in the reference currency."""
    from_user_id: int
    to_user_id: int
    amount: Decimal


def minimize_transfers(balances: Dict[int, Decimal]) -> List[Transfer]:
    """
    Minimize the number of transfers needed to settle debts.

    Greedy matching: the largest creditor is paid by the largest debtor until
    one side is exhausted. Balances within one cent of zero are ignored.
    Sorting is stable, so members with equal balances keep the iteration
    order of ``balances``. Produces at most ``nonzero balances - 1``
    transfers, each rounded to cents.
    """
    # Separate creditors (positive balance) and debtors (negative balance)
    creditors = [[uid, bal] for uid, bal in balances.items() if bal > NOISE_FLOOR]
    debtors = [[uid, bal] for uid, bal in balances.items() if bal < -NOISE_FLOOR]

    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1])  # Most negative first

    transfers: List[Transfer] = []
    cred_idx = 0
    debt_idx = 0

    while cred_idx < len(creditors) and debt_idx < len(debtors):
        creditor = creditors[cred_idx]
        debtor = debtors[debt_idx]

        # Transfer the minimum of what's owed and what's needed
        transfer_amount = min(creditor[1], abs(debtor[1]))
        if transfer_amount > NOISE_FLOOR:
            transfers.append(Transfer(debtor[0], creditor[0], round_money(transfer_amount)))

        creditor[1] -= transfer_amount
        debtor[1] += transfer_amount

        if creditor[1] < NOISE_FLOOR:
            cred_idx += 1
        if abs(debtor[1]) < NOISE_FLOOR:
            debt_idx += 1

    return transfers
