import os
import sys
from pathlib import Path

# Ensure backend/ is on sys.path so tests can import ecotrack.*
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "ecotrack-test-secret-not-for-production")
os.environ.setdefault("AI_API_KEY", "")

from datetime import datetime

import jwt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ecotrack.config import settings
from ecotrack.database import Base, get_db
from ecotrack.models.alert import Alert
from ecotrack.models.approval import ManagerApproval
from ecotrack.schemas.approval import Caller

BUSINESS_ID = "biz-1"
OTHER_BUSINESS_ID = "biz-2"


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
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a file database, one connection each, for tests that run real threads"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ecotrack.db'}",
        connect_args={"check_same_thread": False, "timeout": 15},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient
    from ecotrack.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_caller(role: str, user_id: str = None, business_id: str = BUSINESS_ID) -> Caller:
    return Caller(user_id=user_id or f"user-{role}", role=role, business_id=business_id)


def make_token(role: str, user_id: str = None, business_id: str = BUSINESS_ID) -> str:
    payload = {"userId": user_id or f"user-{role}", "role": role, "businessId": business_id}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def auth_headers(role: str, **kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(role, **kwargs)}"}


def make_approval(db, **overrides) -> ManagerApproval:
    fields = {
        "business_id": BUSINESS_ID,
        "required_role": "inventory_manager",
        "approval_type": "spoilage_action",
        "product_name": "Milk",
        "quantity": "20kg",
        "location": "Cold Storage A",
        "days_left": 2,
        "risk_level": "HIGH",
        "ai_suggestion": "Discount and sell today",
        "priority": "HIGH",
        "submitted_by": "user-admin",
        "status": "pending",
    }
    fields.update(overrides)
    approval = ManagerApproval(**fields)
    db.add(approval)
    db.commit()
    db.refresh(approval)
    return approval


def make_alert(db, **overrides) -> Alert:
    fields = {
        "business_id": BUSINESS_ID,
        "product_id": "PRD-0001",
        "product_name": "Lettuce",
        "risk_level": "HIGH",
        "details": "Critical: Lettuce expires in 2 days. Immediate action required.",
        "days_left": 2,
        "temperature": 6.0,
        "humidity": 85.0,
        "location": "Cold Storage A",
        "quantity": "40kg",
        "value": "3200.00",
        "status": "active",
    }
    fields.update(overrides)
    alert = Alert(**fields)
    db.add(alert)
    db.commit()
    db.refresh(alert)
    return alert


def decided_at(hour: int) -> datetime:
    return datetime(2026, 10, 1, hour, 0, 0)
