from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from typing import List
from splitledger.api.v1.deps import get_current_user_id, publish_event
from splitledger.db.database import get_db
from splitledger.rabbitmq.publisher import GROUP_DELETED
from splitledger.services.access_guard import require_member
from splitledger.services.group_service import create_group, get_group, get_user_groups, delete_group
from splitledger.schemas.group_schema import GroupCreate, GroupOut, GroupWithExpenses

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("/", response_model=GroupOut)
def create_new_group(
    group_data: GroupCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a new group"""
    return create_group(db, group_data, user_id)


@router.get("/", response_model=List[GroupWithExpenses])
def get_my_groups(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get all groups for current user, with members and expenses"""
    return get_user_groups(db, user_id)


@router.get("/{group_id}", response_model=GroupOut)
def get_group_details(
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get group details with members"""
    group = get_group(db, group_id)
    require_member(group, user_id)
    return group


@router.delete("/{group_id}")
def delete_existing_group(
    group_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete a group and all of its expenses (creator only)"""
    delete_group(db, group_id, user_id)
    publish_event(request, GROUP_DELETED, {"group_id": group_id, "deleted_by": user_id})
    return {"message": "Group deleted successfully"}
