"""
Debt Simplification Module

Reduces a group's net balances to a short list of peer-to-peer transfers
that settles everyone.

The algorithm works by:
1. Checking that the balances sum to zero (within tolerance)
2. Separating members into creditors (positive balance) and debtors (negative balance)
3. Repeatedly matching the largest creditor with the largest debtor
4. Transferring the smaller of the two amounts, which settles at least one party

Every round settles at least one member, so n non-zero balances need at most
n - 1 transfers. Ties between equal amounts go to the lower member id, which
makes the output reproducible for identical input.

Time Complexity: O(n log n) using two heaps
Space Complexity: O(n)

Example Usage:
    from splitledger.utils.debt_simplification import simplify_debts

    balances = {"A": Decimal("60"), "B": Decimal("-30"), "C": Decimal("-30")}
    transfers = simplify_debts(balances)

    # Result: [{"from": "B", "to": "A", "amount": Decimal("30.00")},
    #          {"from": "C", "to": "A", "amount": Decimal("30.00")}]
"""

import heapq
import logging
from decimal import Decimal
from typing import Dict, List, Mapping

from splitledger.core.exceptions import ValidationError
from splitledger.utils.balances import round_decimal

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal('0.01')


def validate_balance_sum(balances: Mapping[str, Decimal], tolerance: Decimal = DEFAULT_TOLERANCE) -> None:
    """
    Validate that the sum of all balances is approximately zero.

    Balances produced by the group ledger are zero-sum by construction, so a
    failure here points at a caller bug rather than bad user input.

    Raises:
        ValidationError: If the sum of balances exceeds the tolerance

    Example:
        >>> validate_balance_sum({"A": Decimal("50"), "B": Decimal("-50")})  # Passes
        >>> validate_balance_sum({"A": Decimal("50"), "B": Decimal("-49")})  # Raises
    """
    total = sum((Decimal(balance) for balance in balances.values()), Decimal('0'))
    if abs(total) > tolerance:
        raise ValidationError(
            f"Balances not zero-sum: total={total}, tolerance={tolerance}",
            details={"total": str(total), "tolerance": str(tolerance)},
        )


def simplify_debts(
    balances: Mapping[str, Decimal],
    tolerance: Decimal = DEFAULT_TOLERANCE
) -> List[Dict[str, object]]:
    """
    Compute the transfers that settle a zero-sum set of balances.

    Args:
        balances: Dictionary mapping member_id -> net_balance
            (positive: is owed money, negative: owes money)
        tolerance: Balances within this distance of zero count as settled
            (default: 0.01)

    Returns:
        Ordered list of transfers:
        [{"from": str, "to": str, "amount": Decimal}, ...]

    Raises:
        ValidationError: If balances don't sum to zero (beyond tolerance)

    Example:
        >>> simplify_debts({"A": Decimal("80"), "B": Decimal("-10"), "C": Decimal("-70")})
        [{'from': 'C', 'to': 'A', 'amount': Decimal('70.00')},
         {'from': 'B', 'to': 'A', 'amount': Decimal('10.00')}]
    """
    if not balances:
        return []

    validate_balance_sum(balances, tolerance)

    # Heap entries are (-amount, member_id): largest amount first, lower id on ties
    creditors = []
    debtors = []
    for member_id, balance in balances.items():
        amount = Decimal(balance)
        if amount > tolerance:
            creditors.append((-amount, member_id))
        elif amount < -tolerance:
            debtors.append((amount, member_id))
    heapq.heapify(creditors)
    heapq.heapify(debtors)

    logger.debug(f"Simplifying debts: {len(creditors)} creditors, {len(debtors)} debtors")

    transfers = []
    while creditors and debtors:
        negative_credit, creditor_id = heapq.heappop(creditors)
        negative_debt, debtor_id = heapq.heappop(debtors)
        credit_amount = -negative_credit
        debt_amount = -negative_debt

        amount = min(credit_amount, debt_amount)
        transfers.append({
            "from": debtor_id,
            "to": creditor_id,
            "amount": round_decimal(amount)
        })
        logger.debug(f"{debtor_id} pays {creditor_id} {round_decimal(amount)}")

        credit_amount -= amount
        debt_amount -= amount

        if credit_amount > tolerance:
            heapq.heappush(creditors, (-credit_amount, creditor_id))
        if debt_amount > tolerance:
            heapq.heappush(debtors, (-debt_amount, debtor_id))

    return transfers


def apply_transfers(balances: Mapping[str, Decimal], transfers: List[Dict[str, object]]) -> Dict[str, Decimal]:
    """
    Return the balances left after the given transfers are made.

    A payment moves the payer's balance up and the recipient's balance down.
    """
    remaining = {member_id: Decimal(balance) for member_id, balance in balances.items()}
    for transfer in transfers:
        remaining[transfer["from"]] = remaining.get(transfer["from"], Decimal('0')) + transfer["amount"]
        remaining[transfer["to"]] = remaining.get(transfer["to"], Decimal('0')) - transfer["amount"]
    return remaining
