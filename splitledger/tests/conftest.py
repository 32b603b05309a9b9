"""
Pytest configuration and fixtures for splitledger tests.
"""
import jwt
import pytest
from decimal import Decimal
from typing import Dict, List
from fastapi.testclient import TestClient

from splitledger.core.config import Settings
from splitledger.db.database import Database
from splitledger.main import create_app
from splitledger.schemas.expense_schema import ExpenseCreate, ExpenseSplitCreate
from splitledger.schemas.group_schema import GroupCreate
from splitledger.services.group_service import create_group

TEST_SECRET = "test-secret"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'ledger.db'}",
        secret_key=TEST_SECRET,
        log_level="DEBUG",
        ledger_events_enabled=False,
    )


@pytest.fixture
def database(settings):
    db = Database(settings.database_url)
    db.init()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def group(db_session):
    """Group of A (creator), B and C"""
    return create_group(db_session, GroupCreate(name="Trip", member_ids=["B", "C"]), created_by="A")


def make_expense_data(amount, allocations, label="Dinner", payer_id=None, date=None) -> ExpenseCreate:
    return ExpenseCreate(
        label=label,
        amount=Decimal(str(amount)),
        payer_id=payer_id,
        date=date,
        splits=[
            ExpenseSplitCreate(member_id=member_id, share_amount=Decimal(str(share)))
            for member_id, share in allocations
        ],
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def make_token(user_id: str, secret: str = TEST_SECRET) -> str:
    return jwt.encode({"user_id": user_id}, secret, algorithm="HS256")


def auth_headers(user_id: str) -> Dict[str, str]:
    return {"access-token": make_token(user_id)}


def verify_transfers_settle_balances(balances: Dict[str, Decimal], transfers: List[Dict]) -> None:
    """
    Helper to verify transfers settle all balances.

    - A member who pays reduces what they owe (balance goes up)
    - A member who receives reduces what they are owed (balance goes down)
    """
    remaining = dict(balances)

    for transfer in transfers:
        remaining[transfer["from"]] += transfer["amount"]
        remaining[transfer["to"]] -= transfer["amount"]

    for user, balance in remaining.items():
        assert abs(balance) <= Decimal("0.01"), \
            f"User {user} not settled: initial={balances[user]}, final={balance}"
