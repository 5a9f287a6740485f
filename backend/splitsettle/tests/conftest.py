"""
Shared fixtures: in-memory database, API client and data factories.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from splitsettle.api.dependencies import get_currency_service
from splitsettle.core.config import DEFAULT_CURRENCY_RATES
from splitsettle.core.security import create_access_token
from splitsettle.db.base import Base
from splitsettle.db.session import get_db
from splitsettle.main import app
from splitsettle.models import Expense, ExpenseSplit, Group, GroupMember, SplitType, User
from splitsettle.services.currency_service import CurrencyService, StaticRateProvider


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def currency_service():
    return CurrencyService(StaticRateProvider(DEFAULT_CURRENCY_RATES), reference="USD")


@pytest.fixture
def client(db, currency_service):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_currency_service] = lambda: currency_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(name: str, preferred_currency: str = None) -> User:
        counter["n"] += 1
        user = User(
            name=name,
            email=f"{name.lower()}{counter['n']}@example.com",
            preferred_currency=preferred_currency,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_group(db):
    def _make_group(name: str, creator: User, members=()) -> Group:
        group = Group(name=name, description=f"{name} shared costs", created_by=creator.id)
        db.add(group)
        db.flush()
        db.add(GroupMember(group_id=group.id, user_id=creator.id, is_creator=True))
        for member in members:
            db.add(GroupMember(group_id=group.id, user_id=member.id))
        db.commit()
        db.refresh(group)
        return group

    return _make_group


@pytest.fixture
def add_expense(db):
    def _add_expense(group, payer, amount, currency="USD", split_type=SplitType.EQUAL, shares=()):
        """``shares`` is a sequence of (user, owed amount) pairs."""
        expense = Expense(
            group_id=group.id,
            payer_id=payer.id,
            title="Shared expense",
            amount=Decimal(str(amount)),
            currency=currency,
            split_type=split_type,
        )
        expense.splits = [
            ExpenseSplit(member_id=user.id, amount=Decimal(str(owed)))
            for user, owed in shares
        ]
        db.add(expense)
        db.commit()
        db.refresh(expense)
        return expense

    return _add_expense


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        token = create_access_token(data={"sub": user.email, "user_id": user.id})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def trio(make_user, make_group):
    """Alice, Bob and Carol in one group; Alice created it."""
    alice = make_user("Alice")
    bob = make_user("Bob")
    carol = make_user("Carol")
    group = make_group("Flatmates", alice, [bob, carol])
    return group, alice, bob, carol
