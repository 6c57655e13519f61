"""
Pytest configuration and fixtures

Tests run against an in-memory SQLite database. The schema is created
before and dropped after every test, so nothing leaks between tests.
LLM clients are never real: API tests override the client dependencies.
"""
import pytest
import sys
import os
from datetime import datetime, timezone

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Must be set before core.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-32-characters-long")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["GOOGLE_AI_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from core.clock import FixedClock, get_clock
from core.database import Base, engine, get_db
from core.security import create_access_token, get_password_hash
import models  # noqa: F401
from models import User

# Tuesday afternoon, UTC
FIXED_NOW = datetime(2026, 3, 10, 14, 30, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db_session():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = Session(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FixedClock(FIXED_NOW)


@pytest.fixture
def client(db_session, clock):
    """TestClient wired to the test session and the fixed clock."""
    from main import app

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def test_user(db_session):
    """Onboarded user: 30y male, 180cm, 80kg, lightly active, building muscle."""
    user = User(
        email="test_user@example.com",
        password_hash=get_password_hash("correct-horse-battery"),
        display_name="Test User",
        age=30,
        gender="male",
        height_cm=180.0,
        weight_kg=80.0,
        activity_level="lightly_active",
        financial_status="balanced",
        fitness_goal="build_muscle",
        daily_calorie_goal=2800,
        onboarding_completed=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session):
    user = User(email="other_user@example.com", password_hash=get_password_hash("another-password"))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user):
    token = create_access_token(data={"sub": str(test_user.id), "email": test_user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(other_user):
    token = create_access_token(data={"sub": str(other_user.id), "email": other_user.email})
    return {"Authorization": f"Bearer {token}"}
