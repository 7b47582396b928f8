"""Shared test fixtures for all test groups."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from showops.db.base import Base, engine_options
from showops.db.models import Project
from showops.repositories.memory import InMemoryStore
from showops.services.audit_recorder import AuditRecorder
from showops.services.configuration_store import ConfigurationStore
from showops.services.phase_engine import PhaseEngine
from showops.services.readiness_aggregator import ReadinessAggregator


class FixedClock:
    """Callable clock pinned to ``now``; tests move it explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


def build_engine(store: InMemoryStore, clock: FixedClock, default_timezone: str = "UTC") -> PhaseEngine:
    repos = store.repositories()
    return PhaseEngine(
        projects=repos.projects,
        readiness=ReadinessAggregator(repos.readiness, clock=clock),
        timecards=repos.timecards,
        audit=AuditRecorder(repos.audit),
        configuration=ConfigurationStore(repos.configuration, repos.projects, clock=clock),
        default_timezone=default_timezone,
        clock=clock,
    )


@pytest.fixture
def clock():
    """Clock pinned to 2025-06-01T12:00Z."""
    return FixedClock(datetime(2025, 6, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def store():
    """Fresh in-memory store."""
    return InMemoryStore()


@pytest.fixture
def phase_engine(store, clock):
    """PhaseEngine over the in-memory store."""
    return build_engine(store, clock)


# Use in-memory SQLite for SQL repository and API tests (fast)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def sql_engine():
    """In-memory SQLite engine with all tables created (one shared connection)."""
    engine = create_async_engine(TEST_DATABASE_URL, **engine_options(TEST_DATABASE_URL))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(sql_engine):
    return async_sessionmaker(sql_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def seed_project(session_factory):
    """Insert a project row; returns its id.

    Usage:
        project_id = await seed_project(phase="pre_show", timezone="America/Los_Angeles")
    """

    async def _seed(**fields) -> uuid.UUID:
        fields.setdefault("name", "Summer Tour")
        fields.setdefault("phase_updated_at", datetime(2025, 1, 1, tzinfo=UTC))
        project = Project(**fields)
        async with session_factory() as session:
            session.add(project)
            await session.commit()
        return project.id

    return _seed
