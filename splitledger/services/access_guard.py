"""
Access and mutation guard for the ledger.

- Only group members may add expenses or read a group's ledger.
- Only the split's own member or the group creator may mark a split paid.
- Only the group creator may delete a group.
"""
import logging
from sqlalchemy.orm import Session, selectinload
from splitledger.core.exceptions import ForbiddenError, NotFoundError
from splitledger.models.groups import Group, Expense

logger = logging.getLogger(__name__)


def get_group_or_404(db: Session, group_id: str) -> Group:
    group = db.get(Group, group_id, options=[selectinload(Group.members)])
    if not group:
        raise NotFoundError("Group not found", details={"group_id": group_id})
    return group


def get_expense_or_404(db: Session, expense_id: str) -> Expense:
    expense = db.get(Expense, expense_id, options=[selectinload(Expense.splits)])
    if not expense:
        raise NotFoundError("Expense not found", details={"expense_id": expense_id})
    return expense


def require_member(group: Group, user_id: str) -> None:
    """Raise ForbiddenError unless user_id belongs to the group"""
    if user_id not in group.member_ids:
        logger.warning(f"User {user_id} denied access to group {group.id}")
        raise ForbiddenError(
            "You are not a member of this group",
            details={"group_id": group.id, "user_id": user_id},
        )


def require_creator(group: Group, user_id: str) -> None:
    if group.created_by != user_id:
        logger.warning(f"User {user_id} is not the creator of group {group.id}")
        raise ForbiddenError("Only the group creator can do this", details={"group_id": group.id})


def require_split_settler(group: Group, member_id: str, requester_id: str) -> None:
    """The split's own member or the group creator may settle it"""
    require_member(group, requester_id)
    if requester_id != member_id and requester_id != group.created_by:
        logger.warning(f"User {requester_id} tried to settle the split of {member_id} in group {group.id}")
        raise ForbiddenError(
            "Only the member or the group creator can mark this split paid",
            details={"member_id": member_id},
        )
