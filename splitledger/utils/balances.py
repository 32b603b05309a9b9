"""
Group Ledger balance calculation.

Net balance convention:
- Positive: the group owes this member (they fronted more than their share)
- Negative: this member owes the group

For every expense the payer is credited and each split's member is debited
their share, but only while that split is unpaid. A paid split contributes
nothing to either side: payment means the member already settled directly with
the payer, so the obligation simply leaves the ledger.

The payer credit is the sum of the unpaid shares rather than the expense
total. Splits may differ from the total by the rounding tolerance, and
crediting the shares keeps every balance mapping exactly zero-sum.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, Sequence

logger = logging.getLogger(__name__)


def round_decimal(value: Decimal, precision: Decimal = Decimal('0.01')) -> Decimal:
    """
    Round a Decimal value to the specified precision.

    Example:
        >>> round_decimal(Decimal("43.333333"), Decimal("0.01"))
        Decimal('43.33')
    """
    return value.quantize(precision)


def calculate_balances(member_ids: Sequence[str], expenses: Iterable[Any]) -> Dict[str, Decimal]:
    """
    Calculate net balance for each member from a group's expenses.

    Args:
        member_ids: The group's members; the result covers exactly these ids
        expenses: Objects exposing ``payer_id`` and ``splits``, where each split
            exposes ``member_id``, ``share_amount`` and ``is_paid``

    Returns:
        Dictionary mapping member_id -> net_balance, in member order. Members
        with no involvement appear with Decimal("0.00").

    Example:
        A paid 90 split 30/30/30 between A, B and C, nothing settled yet:
        {"A": Decimal("60.00"), "B": Decimal("-30.00"), "C": Decimal("-30.00")}
    """
    balances: Dict[str, Decimal] = {member_id: Decimal('0') for member_id in member_ids}

    for expense in expenses:
        payer_id = expense.payer_id
        if payer_id not in balances:
            logger.warning(f"Payer {payer_id} of expense {getattr(expense, 'id', '?')} is not a group member")
            balances[payer_id] = Decimal('0')

        for split in expense.splits:
            if split.is_paid:
                continue

            share = Decimal(split.share_amount)
            if split.member_id not in balances:
                logger.warning(f"Split member {split.member_id} is not a group member")
                balances[split.member_id] = Decimal('0')

            balances[payer_id] += share
            balances[split.member_id] -= share

    return {member_id: round_decimal(balance) for member_id, balance in balances.items()}


def calculate_debt_summary(member_ids: Sequence[str], expenses: Iterable[Any]) -> Dict[str, Dict[str, Decimal]]:
    """
    Break each member's net balance into what others still owe them and what
    they still owe others.

    Returns:
        Dictionary mapping member_id -> {"total_owed", "total_owes", "net_balance"}
    """
    summary = {
        member_id: {"total_owed": Decimal('0'), "total_owes": Decimal('0')}
        for member_id in member_ids
    }

    for expense in expenses:
        for split in expense.splits:
            # A payer's own share nets out against itself
            if split.is_paid or split.member_id == expense.payer_id:
                continue

            share = Decimal(split.share_amount)
            summary.setdefault(expense.payer_id, {"total_owed": Decimal('0'), "total_owes": Decimal('0')})
            summary.setdefault(split.member_id, {"total_owed": Decimal('0'), "total_owes": Decimal('0')})
            summary[expense.payer_id]["total_owed"] += share
            summary[split.member_id]["total_owes"] += share

    return {
        member_id: {
            "total_owed": round_decimal(entry["total_owed"]),
            "total_owes": round_decimal(entry["total_owes"]),
            "net_balance": round_decimal(entry["total_owed"] - entry["total_owes"]),
        }
        for member_id, entry in summary.items()
    }
