"""Service test fixtures — async DB, fixed clock, FastAPI test client and seed helpers.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db and get_clock dependencies overridden: one test DB, one pinned instant
    - db_manager patched so the readiness probe sees the test engine

Design Decisions:
    - SQLite in-memory: fast, no external dependency; FOR UPDATE is a no-op there,
      the unique constraint and CHECKs still apply
    - StaticPool: every session shares the single in-memory connection
"""

from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.pool import StaticPool

import program_lifecycle.infrastructure.database as db_module
from program_lifecycle.api.dependencies import get_clock
from program_lifecycle.db.base import Base
from program_lifecycle.infrastructure.database import DatabaseSessionManager, get_db
from program_lifecycle.main import app
from program_lifecycle.models import ProgramModel, ProgramSkillModel, UserModel
from tests.core.factories import NOW
from tests.services.fake_repositories import FixedClock


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
async def client(test_engine, test_session_factory, clock):
    """FastAPI test client with DB and clock dependencies overridden."""
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory

    async def override_get_db():
        async with fake_manager.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    original_manager = db_module.db_manager
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def seed_program(test_session_factory):
    """Insert a program row directly; returns its id."""
    counter = {"n": 0}

    async def _seed(**overrides) -> str:
        counter["n"] += 1
        skills = overrides.pop("skills", [])
        fields = dict(
            id=f"prog-{counter['n']}",
            title="Founders Bootcamp",
            description="Six weeks of hands-on product and fundraising work.",
            type="bootcamp",
            status="upcoming",
            start_date=NOW + timedelta(days=10),
            end_date=NOW + timedelta(days=52),
            duration="6 weeks",
            instructor="Dana Reyes",
            participants=0,
            featured=False,
            created_by="owner-1",
            created_at=NOW - timedelta(days=1),
            updated_at=NOW - timedelta(days=1),
        )
        fields.update(overrides)
        row = ProgramModel(**fields)
        row.skills = [
            ProgramSkillModel(skill=skill, position=i) for i, skill in enumerate(skills)
        ]
        async with test_session_factory() as session:
            session.add(row)
            await session.commit()
        return fields["id"]

    return _seed


@pytest.fixture
def seed_user(test_session_factory):
    async def _seed(user_id: str, name: str = "Dana Reyes", **extra) -> None:
        async with test_session_factory() as session:
            session.add(UserModel(id=user_id, name=name, **extra))
            await session.commit()

    return _seed
