"""Service test fixtures — async DB, frozen clock, roster and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - get_clock overridden with a FrozenClock the test can advance
    - db_manager patched for code that bypasses get_db (readiness probe)

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
    - Roster seeded directly in the members table; names are ASCII so they
      travel unchanged in HTTP headers
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from coopvote.api.dependencies import get_clock
from coopvote.config import Settings, get_settings
from coopvote.db.base import Base
from coopvote.infrastructure.database import get_db, DatabaseSessionManager
from coopvote.models.member import Member
import coopvote.infrastructure.database as db_module
from coopvote.main import app

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

SCOPE = "coop-1"
OTHER_SCOPE = "coop-2"

# member id -> (first name, last name, scope, role)
ROSTER = {
    "m-ana": ("Ana", "Suarez", SCOPE, "member"),
    "m-bruno": ("Bruno", "Acosta", SCOPE, "member"),
    "m-carla": ("Carla", "Mendez", SCOPE, "member"),
    "adm-1": ("Diego", "Ruiz", SCOPE, "admin"),
    "m-eva": ("Eva", "Torres", OTHER_SCOPE, "member"),
    "adm-2": ("Fede", "Rios", OTHER_SCOPE, "admin"),
}


class FrozenClock:
    """Callable clock whose time only moves when the test says so."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


def identity_headers(member_id: str) -> dict[str, str]:
    first, last, scope, role = ROSTER[member_id]
    return {
        "X-Member-Id": member_id,
        "X-Member-Name": f"{first} {last}",
        "X-Scope-Id": scope,
        "X-Member-Role": role,
    }


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
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
    return FrozenClock(T0)


@pytest.fixture
def settings():
    return Settings(access_token=None, concurrency_max_retries=3)


@pytest.fixture
async def seed_members(test_db):
    """Insert the whole ROSTER into the member directory."""
    for member_id, (first, last, scope, role) in ROSTER.items():
        test_db.add(Member(
            id=member_id, scope_id=scope, first_name=first,
            last_name=last, role=role,
        ))
    await test_db.commit()
    return ROSTER


@pytest.fixture
async def client(test_engine, test_session_factory, clock, settings):
    """FastAPI test client with DB, clock and settings dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_settings] = lambda: settings

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def as_member():
    """Headers for a ROSTER member: as_member("m-ana")."""
    return identity_headers


@pytest.fixture
def create_resolution(client, as_member):
    """Create a resolution as the coop-1 admin and return its JSON."""
    async def _create(title="Adopt budget", duration_minutes=60, **extra):
        res = await client.post(
            "/api/v1/resolutions",
            json={"title": title, "duration_minutes": duration_minutes, **extra},
            headers=as_member("adm-1"),
        )
        assert res.status_code == 201, res.text
        return res.json()
    return _create
