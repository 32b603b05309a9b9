import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Sequence
from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload
from splitledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from splitledger.models.groups import Expense, ExpenseSplit
from splitledger.schemas.expense_schema import ExpenseCreate, DebtSummary, SplitType
from splitledger.services.access_guard import (
    get_group_or_404, get_expense_or_404, require_member, require_split_settler
)
from splitledger.utils.balances import calculate_balances, calculate_debt_summary
from splitledger.utils.splits import (
    DEFAULT_TOLERANCE, equal_allocations, make_splits, to_amount, weighted_allocations
)

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 200


def create_expense(
    db: Session,
    group_id: str,
    expense_data: ExpenseCreate,
    requester_id: str,
    tolerance: Decimal = DEFAULT_TOLERANCE
) -> Expense:
    """
    Record a new expense together with its full split set.

    The payer defaults to the group creator when the request does not name
    one. Shares are given explicitly, or derived from the amount by an equal
    or weighted split. Nothing is written unless every check passes.
    """
    group = get_group_or_404(db, group_id)
    require_member(group, requester_id)

    label = (expense_data.label or "").strip()
    if not label:
        raise ValidationError("Expense label must not be empty")
    if len(label) > MAX_LABEL_LENGTH:
        raise ValidationError(
            f"Expense label must not be longer than {MAX_LABEL_LENGTH} characters",
            details={"length": len(label)},
        )

    amount = to_amount(expense_data.amount, "amount")
    if amount <= 0:
        raise ValidationError("Expense amount must be positive", details={"amount": str(amount)})

    member_ids = set(group.member_ids)
    payer_id = expense_data.payer_id or group.created_by
    if payer_id not in member_ids:
        raise ValidationError(f"Payer {payer_id} is not a member of this group", details={"payer_id": payer_id})

    allocations = _resolve_allocations(expense_data, amount, group.member_ids, tolerance)
    splits = make_splits(amount, allocations, tolerance)

    for split in splits:
        if split["member_id"] not in member_ids:
            raise ValidationError(
                f"User {split['member_id']} is not a member of this group",
                details={"member_id": split["member_id"]},
            )

    expense = Expense(
        group_id=group.id,
        label=label,
        amount=amount,
        payer_id=payer_id,
        date=expense_data.date or datetime.now(timezone.utc),
        splits=[
            ExpenseSplit(
                member_id=split["member_id"],
                share_amount=split["share_amount"],
                is_paid=split["is_paid"],
                position=position,
            )
            for position, split in enumerate(splits)
        ],
    )
    db.add(expense)
    db.commit()
    expense = _load_expense(db, expense.id)

    logger.info(f"Created expense {expense.id} in group {group.id}: {amount} paid by {payer_id}, {len(splits)} splits")
    return expense


def _resolve_allocations(
    expense_data: ExpenseCreate,
    amount: Decimal,
    member_ids: Sequence[str],
    tolerance: Decimal
) -> Sequence[Any]:
    """Turn the requested split type into (member_id, share) allocations"""
    split_type = expense_data.split_type

    if split_type == SplitType.exact:
        if expense_data.participants is not None or expense_data.weights is not None:
            raise ValidationError("Exact splits take explicit splits, not participants or weights")
        return expense_data.splits

    if expense_data.splits:
        raise ValidationError(f"{split_type.value.capitalize()} splits must not list explicit splits")

    if split_type == SplitType.equal:
        if expense_data.weights is not None:
            raise ValidationError("Equal splits take participants, not weights")
        participants = expense_data.participants if expense_data.participants is not None else member_ids
        return equal_allocations(amount, list(participants))

    if expense_data.participants is not None:
        raise ValidationError("Weighted splits take weights, not participants")
    return weighted_allocations(amount, expense_data.weights or {}, tolerance)


def _load_expense(db: Session, expense_id: str) -> Expense:
    return (
        db.query(Expense)
        .options(selectinload(Expense.splits))
        .filter(Expense.id == expense_id)
        .one()
    )


def get_expense(db: Session, expense_id: str) -> Expense:
    """Get an expense by ID"""
    return get_expense_or_404(db, expense_id)


def get_group_expenses(db: Session, group_id: str) -> List[Expense]:
    """Get all expenses for a group in the order they were recorded"""
    return (
        db.query(Expense)
        .options(selectinload(Expense.splits))
        .filter(Expense.group_id == group_id)
        .order_by(Expense.created_at, Expense.id)
        .all()
    )


def _compare_and_set_paid(db: Session, split_id: str, requester_id: str) -> bool:
    """
    Flip a split to paid only if it is still unpaid.

    Returns False when another caller already flipped it.
    """
    result = db.execute(
        update(ExpenseSplit)
        .where(ExpenseSplit.id == split_id, ExpenseSplit.is_paid.is_(False))
        .values(is_paid=True, paid_at=datetime.now(timezone.utc), settled_by=requester_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def mark_split_paid(db: Session, expense_id: str, member_id: str, requester_id: str) -> Expense:
    """
    Mark one member's split of an expense as paid.

    Settling is exactly-once: a split that is already paid, or that a
    concurrent request settles first, raises ConflictError.
    """
    expense = get_expense_or_404(db, expense_id)
    require_split_settler(expense.group, member_id, requester_id)

    split = next((s for s in expense.splits if s.member_id == member_id), None)
    if split is None:
        raise NotFoundError(
            f"Member {member_id} has no split on this expense",
            details={"expense_id": expense_id, "member_id": member_id},
        )

    if split.is_paid:
        raise ConflictError("Split is already paid", details={"expense_id": expense_id, "member_id": member_id})

    if not _compare_and_set_paid(db, split.id, requester_id):
        db.rollback()
        logger.warning(f"Lost race settling split of {member_id} on expense {expense_id}")
        raise ConflictError("Split is already paid", details={"expense_id": expense_id, "member_id": member_id})

    db.commit()
    expense = _load_expense(db, expense_id)

    logger.info(f"Split of {member_id} on expense {expense_id} marked paid by {requester_id}")
    if expense.is_paid:
        logger.info(f"Expense {expense_id} is fully paid")
    return expense


def compute_balances(db: Session, group_id: str) -> Dict[str, Decimal]:
    """Net balance of every group member, recomputed from stored expenses"""
    group = get_group_or_404(db, group_id)
    return calculate_balances(group.member_ids, get_group_expenses(db, group_id))


def get_debt_summary(db: Session, group_id: str) -> List[DebtSummary]:
    """Calculate debt summary for all group members"""
    group = get_group_or_404(db, group_id)
    summary = calculate_debt_summary(group.member_ids, get_group_expenses(db, group_id))

    return [
        DebtSummary(
            user_id=user_id,
            total_owed=entry["total_owed"],
            total_owes=entry["total_owes"],
            net_balance=entry["net_balance"]
        )
        for user_id, entry in summary.items()
    ]
