from __future__ import annotations

import os
from typing import Generator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.common.models import Base, Group, Member
from app.auth.utils import create_member_token

# Use in-memory SQLite for tests (faster than Postgres for unit tests)
TEST_DB_URL = os.getenv("TEST_DB_URL", "sqlite:///:memory:")

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Create a fresh database for each test.

    SQLAlchemy renders the Enum columns as VARCHAR on SQLite and Uuid works
    across dialects, so the models are created as-is.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create a test client with dependency overrides."""

    def get_test_db():
        yield db

    from app.common.db import get_db

    app.dependency_overrides[get_db] = get_test_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_member(db: Session) -> Member:
    """Create an admin member."""
    member = Member(
        id=uuid4(),
        email="admin@example.com",
        first_name="Ada",
        last_name="Admin",
        phone="+15550000000",
        role="admin",
        is_active=True,
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


@pytest.fixture
def regular_member(db: Session) -> Member:
    """Create a non-admin member."""
    member = Member(
        id=uuid4(),
        email="member@example.com",
        first_name="Mo",
        last_name="Member",
        phone="+15550000001",
        role="member",
        is_active=True,
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


@pytest.fixture
def admin_token(admin_member: Member) -> str:
    """Return access token for the admin member."""
    return create_member_token(str(admin_member.id), admin_member.role)


@pytest.fixture
def member_token(regular_member: Member) -> str:
    """Return access token for the non-admin member."""
    return create_member_token(str(regular_member.id), regular_member.role)


@pytest.fixture
def choir_group(db: Session) -> Group:
    """Create the Choir group."""
    group = Group(id=uuid4(), name="Choir", group_type="choir")
    db.add(group)
    db.commit()
    db.refresh(group)
    return group
