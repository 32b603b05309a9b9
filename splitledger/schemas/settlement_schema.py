from pydantic import BaseModel
from decimal import Decimal


class OptimizedSettlement(BaseModel):
    from_user_id: str
    to_user_id: str
    amount: Decimal
