"""Shared pytest fixtures for MenuFlow tests.

Provides:
- In-memory SQLite database (StaticPool, one schema per test)
- Tenants, locations, staff users and menus
- In-process fakes for object storage and re-index triggering

Usage:
    @pytest.mark.asyncio
    async def test_process(db_session, fake_storage, staff_user_id, location):
        ...
"""

import os

# Environment must be set before menuflow settings are first loaded
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from menuflow.config import PipelineConfig
from menuflow.models import Base, Location, Menu, MenuIngestion, StaffRole

from fixtures.pipeline import FakeReindex, FakeStorage, create_ingestion


test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh schema per test; dropped afterwards."""
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def location(db_session: Session, tenant_id: UUID) -> Location:
    location = Location(tenant_id=tenant_id, name="Trattoria Centrale", currency="EUR")
    db_session.add(location)
    db_session.commit()
    return location


@pytest.fixture
def staff_user_id(db_session: Session, tenant_id: UUID) -> UUID:
    user_id = uuid4()
    db_session.add(StaffRole(user_id=user_id, tenant_id=tenant_id, role="manager"))
    db_session.commit()
    return user_id


@pytest.fixture
def outsider_user_id(db_session: Session) -> UUID:
    """Staff of another tenant."""
    user_id = uuid4()
    db_session.add(StaffRole(user_id=user_id, tenant_id=uuid4(), role="owner"))
    db_session.commit()
    return user_id


@pytest.fixture
def menu(db_session: Session, location: Location) -> Menu:
    menu = Menu(tenant_id=location.tenant_id, location_id=location.id, name="Dinner", version=1)
    db_session.add(menu)
    db_session.commit()
    return menu


@pytest.fixture
def make_ingestion(db_session: Session, location: Location, staff_user_id: UUID):
    """Factory: make_ingestion(status="awaiting_review", file_mime="image/png")"""
    def _make(**kwargs) -> MenuIngestion:
        return create_ingestion(db_session, location, staff_user_id, **kwargs)
    return _make


# =============================================================================
# PIPELINE FAKES
# =============================================================================

@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def fake_reindex() -> FakeReindex:
    return FakeReindex()
