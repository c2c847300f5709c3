"""
Pytest configuration and fixtures for Cadence tests.
"""

import os

# Settings are read at import time; keep the app off the production database.
os.environ.setdefault("CADENCE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from app.main import app
from app.database import get_session
from app.services.scheduler import ScheduleTask, TaskDependency


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a throwaway SQLite database with all tables."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cadence_test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session maker bound to the test database, for opening independent sessions."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def enqueued(monkeypatch):
    """Capture reschedule jobs instead of sending them to Redis."""
    jobs: list[tuple[str, str]] = []

    async def fake_enqueue(project_id: str, version_id: str) -> None:
        jobs.append((project_id, version_id))

    monkeypatch.setattr("app.worker.enqueue_reschedule", fake_enqueue)
    return jobs


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, enqueued):
    """Create an async test client with test database."""
    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def make_task(task_id, duration=1, fs=(), ss=()):
    """Build a ScheduleTask with FS and SS predecessors."""
    deps = [TaskDependency(predecessor_id=p, type="FS") for p in fs]
    deps += [TaskDependency(predecessor_id=p, type="SS") for p in ss]
    return ScheduleTask(id=task_id, duration=duration, dependencies=deps)


def fixed_clock(today: date):
    """Return a clock callable that always reports `today`."""
    return lambda: today
