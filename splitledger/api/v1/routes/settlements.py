from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from splitledger.api.v1.deps import get_current_user_id
from splitledger.db.database import get_db
from splitledger.services.access_guard import require_member
from splitledger.services.expense_service import compute_balances, get_debt_summary
from splitledger.services.group_service import get_group
from splitledger.services.settlement_service import suggest_settlements
from splitledger.schemas.expense_schema import DebtSummary, MemberBalance
from splitledger.schemas.settlement_schema import OptimizedSettlement

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.get("/groups/{group_id}/balances", response_model=List[MemberBalance])
def get_group_balances(
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get the net balance of every group member"""
    require_member(get_group(db, group_id), user_id)
    balances = compute_balances(db, group_id)
    return [MemberBalance(user_id=member_id, net_balance=balance) for member_id, balance in balances.items()]


@router.get("/groups/{group_id}/debts", response_model=List[DebtSummary])
def get_group_debt_summary(
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get debt summary for all group members"""
    require_member(get_group(db, group_id), user_id)
    return get_debt_summary(db, group_id)


@router.get("/groups/{group_id}/optimize", response_model=List[OptimizedSettlement])
def get_optimized_settlements(
    group_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get optimized settlement suggestions"""
    require_member(get_group(db, group_id), user_id)
    return suggest_settlements(db, group_id)
