import os

# in-memory database on one shared connection; must be set before qr_loyalty.db is imported
os.environ["DATABASE_URL"] = "sqlite://"

import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from qr_loyalty.db import Base, SessionLocal, engine
from qr_loyalty.main import app
from qr_loyalty.models.reward import Reward
from qr_loyalty.services.ledger_service import ensure_customer


T0 = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def customer(db):
    """A known customer with an empty balance."""
    return ensure_customer(db, uuid.uuid4(), "Ana Pop")


@pytest.fixture
def other_customer(db):
    return ensure_customer(db, uuid.uuid4(), "Mihai Ionescu")


@pytest.fixture
def croissant(db):
    """An active reward costing 50 points."""
    reward = Reward(name="Free croissant", description="Any butter croissant", points_cost=50)
    db.add(reward)
    db.commit()
    db.refresh(reward)
    return reward
