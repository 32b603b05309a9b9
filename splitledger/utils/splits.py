"""
Split Model

Turns an expense total and a list of per-member allocations into a validated
split set. Validation is strict: a split set that does not add up to the
expense total is rejected, never adjusted.

Example Usage:
    from splitledger.utils.splits import make_splits, equal_allocations

    allocations = equal_allocations(Decimal("100"), ["A", "B", "C"])
    # [("A", Decimal("33.34")), ("B", Decimal("33.33")), ("C", Decimal("33.33"))]

    splits = make_splits(Decimal("100"), allocations)
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from splitledger.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
DEFAULT_TOLERANCE = Decimal("0.01")
# Largest value a DECIMAL(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")


def to_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Convert a user-supplied amount to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than its
    binary approximation. Amounts with sub-cent precision are rejected.

    Raises:
        ValidationError: If the value is not a finite number, has more than
            two decimal places, or is larger than MAX_AMOUNT in magnitude
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number", details={"field": field, "value": str(value)})

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", details={"field": field, "value": str(value)})

    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(
            f"{field} must not exceed {MAX_AMOUNT}",
            details={"field": field, "value": str(value), "max": str(MAX_AMOUNT)},
        )

    if amount != amount.quantize(CENT):
        raise ValidationError(
            f"{field} must not have more than two decimal places",
            details={"field": field, "value": str(value)},
        )
    return amount


def _unpack_allocation(allocation: Any) -> Tuple[str, Any]:
    if isinstance(allocation, (tuple, list)) and len(allocation) == 2:
        return allocation[0], allocation[1]
    if isinstance(allocation, Mapping):
        return allocation.get("member_id"), allocation.get("share_amount")
    return getattr(allocation, "member_id", None), getattr(allocation, "share_amount", None)


def make_splits(
    total_amount: Any,
    allocations: Sequence[Any],
    tolerance: Decimal = DEFAULT_TOLERANCE
) -> List[Dict[str, Any]]:
    """
    Validate allocations against an expense total and build the split set.

    Args:
        total_amount: The expense total
        allocations: Sequence of (member_id, share_amount) pairs, mappings or
            objects with member_id / share_amount attributes
        tolerance: Maximum allowed difference between the sum of shares and
            the total (default: 0.01)

    Returns:
        List of split dicts in allocation order:
        [{"member_id": str, "share_amount": Decimal, "is_paid": False}, ...]

    Raises:
        ValidationError: If allocations are empty, repeat a member, contain a
            negative share, or do not sum to the total within tolerance

    Example:
        >>> make_splits(Decimal("90"), [("A", 30), ("B", 30), ("C", 30)])
        [{'member_id': 'A', 'share_amount': Decimal('30'), 'is_paid': False}, ...]
    """
    total = to_amount(total_amount, "total_amount")

    if not allocations:
        raise ValidationError("At least one split is required")

    splits = []
    seen = set()
    for allocation in allocations:
        member_id, raw_share = _unpack_allocation(allocation)

        if not member_id:
            raise ValidationError("Every split needs a member_id")
        if member_id in seen:
            raise ValidationError(
                f"Member {member_id} appears more than once in the splits",
                details={"member_id": member_id},
            )
        seen.add(member_id)

        share = to_amount(raw_share, "share_amount")
        if share < 0:
            raise ValidationError(
                f"Share for member {member_id} must not be negative",
                details={"member_id": member_id, "share_amount": str(share)},
            )

        splits.append({"member_id": member_id, "share_amount": share, "is_paid": False})

    share_total = sum((split["share_amount"] for split in splits), Decimal("0"))
    difference = share_total - total
    if abs(difference) > tolerance:
        raise ValidationError(
            f"Total of splits ({share_total}) must equal expense amount ({total})",
            details={"total_amount": str(total), "share_total": str(share_total), "difference": str(difference)},
        )

    logger.debug(f"Validated {len(splits)} splits for total {total}")
    return splits


def equal_allocations(total_amount: Any, member_ids: Sequence[str]) -> List[Tuple[str, Decimal]]:
    """
    Split a total evenly between members, in cents.

    The leftover cents after an even division go one each to the first
    members, so the allocations always add up to the total exactly.

    Example:
        >>> equal_allocations(Decimal("100"), ["A", "B", "C"])
        [('A', Decimal('33.34')), ('B', Decimal('33.33')), ('C', Decimal('33.33'))]
    """
    total = to_amount(total_amount, "total_amount")
    if not member_ids:
        raise ValidationError("At least one member is required for an equal split")

    count = len(member_ids)
    base_share = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    leftover_cents = int((total - base_share * count) / CENT)

    allocations = []
    for index, member_id in enumerate(member_ids):
        share = base_share + (CENT if index < leftover_cents else Decimal("0"))
        allocations.append((member_id, share))
    return allocations


def weighted_allocations(
    total_amount: Any,
    weights: Mapping[str, Any],
    tolerance: Decimal = DEFAULT_TOLERANCE
) -> List[Tuple[str, Decimal]]:
    """
    Split a total by per-member weights that sum to 1.0.

    Each share is rounded to cents; the last member absorbs the rounding
    remainder so the allocations add up to the total exactly.

    Raises:
        ValidationError: If weights are empty, negative, or do not sum to 1.0
            within tolerance
    """
    total = to_amount(total_amount, "total_amount")
    if not weights:
        raise ValidationError("At least one weight is required for a weighted split")

    try:
        parsed = {member_id: Decimal(str(weight)) for member_id, weight in weights.items()}
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("Weights must be numbers")
    if not all(weight.is_finite() for weight in parsed.values()):
        raise ValidationError("Weights must be finite numbers")
    if any(weight < 0 for weight in parsed.values()):
        raise ValidationError("Weights must not be negative")

    weight_sum = sum(parsed.values(), Decimal("0"))
    if abs(weight_sum - Decimal("1")) > tolerance:
        raise ValidationError(f"Weights must sum to 1.0, got {weight_sum}", details={"weight_sum": str(weight_sum)})

    member_ids = list(parsed)
    allocations = []
    allocated = Decimal("0")
    for member_id in member_ids[:-1]:
        share = (total * parsed[member_id]).quantize(CENT)
        allocations.append((member_id, share))
        allocated += share
    allocations.append((member_ids[-1], total - allocated))
    return allocations
