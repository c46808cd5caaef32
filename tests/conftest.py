"""Pytest configuration and shared fixtures."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from safewatch.app import app
from safewatch.db import SessionLocal, create_tables, drop_tables
from safewatch.models.observation import CorrectiveActionStatus, Observation, ObservationStatus
from safewatch.models.user import User, UserRole
from safewatch.core.security import create_access_token, get_password_hash


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
def fresh_database():
    """Give every test an empty in-memory schema."""
    create_tables()
    yield
    drop_tables()


@pytest.fixture
def db() -> Session:
    """Session sharing the in-memory database with the app.

    Call ``db.expire_all()`` before reading rows an API call has changed.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db: Session):
    """Factory creating committed users; approved by default."""
    counter = {"n": 0}

    def _make_user(
        name: str = None,
        role: UserRole = UserRole.USER,
        approved: bool = True,
        password: str = "secret123",
        employee_id: str = None,
        points: int = 0,
    ) -> User:
        counter["n"] += 1
        user = User(
            employee_id=employee_id or f"EMP{counter['n']:03d}",
            name=name or f"User {counter['n']}",
            role=role,
            password_hash=get_password_hash(password),
            approved=approved,
            points=points,
            level="Bronze",
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    """Build a bearer header for a user."""
    def _auth_headers(user: User) -> dict:
        token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def reporter(make_user) -> User:
    return make_user(name="Rita Reporter", employee_id="E100")


@pytest.fixture
def officer(make_user) -> User:
    return make_user(name="Omar Officer", employee_id="E200", role=UserRole.SAFETY_OFFICER)


@pytest.fixture
def admin(make_user) -> User:
    return make_user(name="Ada Admin", employee_id="E900", role=UserRole.ADMIN)


@pytest.fixture
def make_observation(db: Session):
    """Factory inserting observations directly, bypassing the API."""
    def _make_observation(
        reporter: User = None,
        reported_by_id: str = None,
        status: ObservationStatus = ObservationStatus.OPEN,
        corrective_action_status: CorrectiveActionStatus = CorrectiveActionStatus.NOT_STARTED,
        area: str = "Pipe Yard",
        date: str = "2024-05-01",
        description: str = "Unguarded rotating shaft",
    ) -> Observation:
        observation = Observation(
            date=date,
            time="09:30:00",
            area=area,
            description=description,
            status=status,
            corrective_action_status=corrective_action_status,
            reported_by=reporter.name if reporter else None,
            reported_by_id=reporter.employee_id if reporter else reported_by_id,
        )
        db.add(observation)
        db.commit()
        db.refresh(observation)
        return observation

    return _make_observation
