"""Service test fixtures — temporary SQLite database, wired services, HTTP client.

Invariants:
    - Every test gets a fresh file-backed SQLite database (separate connections per session)
    - Time is frozen through FrozenClock; tests advance it explicitly
    - The HTTP client talks to an app whose services container is the test one

Design Decisions:
    - File-backed SQLite over :memory:: concurrent sessions need distinct
      connections that still see the same data
    - Services injected on app.state instead of dependency overrides: the
      lifespan is not run by ASGITransport
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from accentvote.api.dependencies import HeaderVoterIdentity
from accentvote.config import Settings
from accentvote.core.domain_types import (
    CategoryId, CategoryOptionId, ItemDefinition, ItemId,
)
from accentvote.db.base import Base
from accentvote.db.session import create_session_factory
from accentvote.infrastructure.database import DatabaseSessionManager
from accentvote.main import Services, create_app
from accentvote.services.distribution_reader import DistributionReader
from accentvote.services.item_catalog import InMemoryItemCatalog
from accentvote.services.rate_limiter import RateLimiter
from accentvote.services.tabulation_engine import TabulationEngine, TabulationPolicy

import accentvote.models  # noqa: F401


class FrozenClock:
    """Clock protocol implementation that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


# Item 1: categories 10/20/30, option handles 101/102/103 -> 10/20/30
# Item 2: categories 10/20, no option handles
ITEM_ONE = ItemDefinition(
    item_id=ItemId(1),
    category_ids=frozenset({CategoryId(10), CategoryId(20), CategoryId(30)}),
    category_options={
        CategoryOptionId(101): CategoryId(10),
        CategoryOptionId(102): CategoryId(20),
        CategoryOptionId(103): CategoryId(30),
    },
)
ITEM_TWO = ItemDefinition(
    item_id=ItemId(2),
    category_ids=frozenset({CategoryId(10), CategoryId(20)}),
)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
async def test_engine(tmp_path):
    engine, _ = create_session_factory(
        f"sqlite+aiosqlite:///{tmp_path / 'accentvote.db'}",
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_manager(test_engine):
    return DatabaseSessionManager.from_engine(test_engine)


@pytest.fixture
def item_catalog():
    return InMemoryItemCatalog([ITEM_ONE, ITEM_TWO])


@pytest.fixture
def rate_limiter(clock):
    return RateLimiter(clock)


@pytest.fixture
def policy():
    return TabulationPolicy()


@pytest.fixture
def engine(db_manager, item_catalog, rate_limiter, clock, policy):
    return TabulationEngine(
        db_manager, item_catalog, rate_limiter, clock, policy=policy,
    )


@pytest.fixture
def reader(db_manager, engine):
    return DistributionReader(db_manager, engine.aggregates, engine.ledger)


@pytest.fixture
def app(db_manager, rate_limiter, engine, reader):
    """FastAPI app whose services container is the test one."""
    app = create_app(Settings(database_url="sqlite+aiosqlite:///unused.db"))
    app.state.services = Services(
        db=db_manager,
        rate_limiter=rate_limiter,
        engine=engine,
        reader=reader,
        identity=HeaderVoterIdentity("X-Voter-Key"),
    )
    return app


@pytest.fixture
async def client(app):
    """HTTP client for app; requests arrive from 127.0.0.1."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
