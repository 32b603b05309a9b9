from pydantic import BaseModel, Field, ConfigDict
from typing import List
from datetime import datetime
from splitledger.schemas.expense_schema import ExpenseOut


class GroupBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class GroupCreate(GroupBase):
    # Creator is added automatically and always listed first
    member_ids: List[str] = []


class GroupOut(GroupBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_by: str
    member_ids: List[str]
    created_at: datetime


class GroupWithExpenses(GroupOut):
    expenses: List[ExpenseOut] = []
