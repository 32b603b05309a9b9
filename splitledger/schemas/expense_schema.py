from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime
from decimal import Decimal
from enum import Enum


class SplitType(str, Enum):
    exact = "exact"
    equal = "equal"
    weighted = "weighted"


class ExpenseSplitBase(BaseModel):
    member_id: str
    share_amount: Decimal


class ExpenseSplitCreate(ExpenseSplitBase):
    pass


class ExpenseSplitOut(ExpenseSplitBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    is_paid: bool
    paid_at: Optional[datetime] = None
    settled_by: Optional[str] = None


class ExpenseBase(BaseModel):
    label: str
    amount: Decimal
    date: Optional[datetime] = None


class ExpenseCreate(ExpenseBase):
    # Defaults to the group creator when omitted
    payer_id: Optional[str] = None
    split_type: SplitType = SplitType.exact
    # exact: one share per member
    splits: List[ExpenseSplitCreate] = []
    # equal: defaults to every group member
    participants: Optional[List[str]] = None
    # weighted: member id -> weight, weights sum to 1.0
    weights: Optional[Dict[str, Decimal]] = None


class ExpenseOut(ExpenseBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    payer_id: str
    is_paid: bool
    created_at: datetime
    splits: List[ExpenseSplitOut] = []


class DebtSummary(BaseModel):
    user_id: str
    total_owed: Decimal
    total_owes: Decimal
    net_balance: Decimal


class MemberBalance(BaseModel):
    user_id: str
    net_balance: Decimal
