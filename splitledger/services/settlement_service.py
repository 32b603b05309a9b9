import logging
from decimal import Decimal
from sqlalchemy.orm import Session
from typing import List, Mapping
from splitledger.schemas.settlement_schema import OptimizedSettlement
from splitledger.services.expense_service import compute_balances
from splitledger.utils.debt_simplification import DEFAULT_TOLERANCE, simplify_debts

logger = logging.getLogger(__name__)


def optimize_settlements(
    balances: Mapping[str, Decimal],
    tolerance: Decimal = DEFAULT_TOLERANCE
) -> List[OptimizedSettlement]:
    """
    Turn net balances into the transfers that settle them.

    Args:
        balances: Dictionary mapping user_id -> net_balance, zero-sum
        tolerance: Balances within this distance of zero are ignored

    Returns:
        List of OptimizedSettlement objects, at most one fewer than the number
        of members with a non-zero balance

    Raises:
        ValidationError: If the balances are not zero-sum
    """
    transfers = simplify_debts(balances, tolerance)
    return [
        OptimizedSettlement(
            from_user_id=transfer["from"],
            to_user_id=transfer["to"],
            amount=transfer["amount"]
        )
        for transfer in transfers
    ]


def suggest_settlements(db: Session, group_id: str) -> List[OptimizedSettlement]:
    """Recommended transfers that settle everything still unpaid in a group"""
    settlements = optimize_settlements(compute_balances(db, group_id))
    logger.info(f"Suggested {len(settlements)} transfers for group {group_id}")
    return settlements
