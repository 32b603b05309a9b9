import logging
from sqlalchemy.orm import Session, selectinload
from typing import List
from splitledger.core.exceptions import ValidationError
from splitledger.models.groups import Expense, Group, GroupMember
from splitledger.schemas.group_schema import GroupCreate
from splitledger.services.access_guard import get_group_or_404, require_creator

logger = logging.getLogger(__name__)


def create_group(db: Session, group_data: GroupCreate, created_by: str) -> Group:
    """Create a group; the creator is always its first member"""
    name = (group_data.name or "").strip()
    if not name:
        raise ValidationError("Group name must not be empty")

    # Ordered and unique, creator first
    member_ids = list(dict.fromkeys([created_by, *group_data.member_ids]))
    if any(not member_id for member_id in member_ids):
        raise ValidationError("Member ids must not be empty")

    group = Group(name=name, created_by=created_by)
    group.members = [
        GroupMember(user_id=member_id, position=position)
        for position, member_id in enumerate(member_ids)
    ]
    db.add(group)
    db.commit()
    group = (
        db.query(Group)
        .options(selectinload(Group.members))
        .filter(Group.id == group.id)
        .one()
    )

    logger.info(f"Created group {group.id} with {len(member_ids)} members")
    return group


def get_group(db: Session, group_id: str) -> Group:
    """Get a group by ID"""
    return get_group_or_404(db, group_id)


def get_user_groups(db: Session, user_id: str) -> List[Group]:
    """Get all groups for a user"""
    return (
        db.query(Group)
        .options(
            selectinload(Group.members),
            selectinload(Group.expenses).selectinload(Expense.splits),
        )
        .join(GroupMember)
        .filter(GroupMember.user_id == user_id)
        .order_by(Group.created_at)
        .all()
    )


def delete_group(db: Session, group_id: str, user_id: str) -> None:
    """Delete a group with all of its expenses and splits (creator only)"""
    group = get_group_or_404(db, group_id)
    require_creator(group, user_id)

    expense_count = len(group.expenses)
    db.delete(group)
    db.commit()
    logger.info(f"Deleted group {group_id} and {expense_count} expenses")
