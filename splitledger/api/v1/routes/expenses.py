from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from typing import List
from splitledger.api.v1.deps import get_current_user_id, publish_event
from splitledger.db.database import get_db
from splitledger.rabbitmq.publisher import EXPENSE_CREATED, SPLIT_PAID, expense_event_payload
from splitledger.services.access_guard import require_member
from splitledger.services.expense_service import (
    create_expense, get_expense, get_group_expenses, mark_split_paid
)
from splitledger.services.group_service import get_group
from splitledger.schemas.expense_schema import ExpenseCreate, ExpenseOut

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("/groups/{group_id}", response_model=ExpenseOut)
def create_new_expense(
    group_id: str,
    expense_data: ExpenseCreate,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a new expense with splits"""
    expense = create_expense(db, group_id, expense_data, user_id)
    publish_event(request, EXPENSE_CREATED, expense_event_payload(expense))
    return expense


@router.get("/groups/{group_id}", response_model=List[ExpenseOut])
def get_group_expenses_list(
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get all expenses for a group"""
    group = get_group(db, group_id)
    require_member(group, user_id)
    return get_group_expenses(db, group.id)


@router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense_details(
    expense_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get expense details with splits"""
    expense = get_expense(db, expense_id)
    require_member(expense.group, user_id)
    return expense


@router.post("/{expense_id}/splits/{member_id}/pay", response_model=ExpenseOut)
def mark_split_paid_endpoint(
    expense_id: str,
    member_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Mark one member's split as paid"""
    expense = mark_split_paid(db, expense_id, member_id, user_id)
    publish_event(request, SPLIT_PAID, {**expense_event_payload(expense), "member_id": member_id})
    return expense
