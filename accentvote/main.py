"""AccentVote API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map AccentVoteError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Services built once on startup and closed on shutdown via the lifespan
    - A services container already set on app.state is reused (tests inject their own)

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - build_services() is the only place collaborators are wired together
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from accentvote import __version__
from accentvote.api.dependencies import ClientAddress, HeaderVoterIdentity
from accentvote.api.error_handlers import register_error_handlers
from accentvote.api.routes import analytics, health, votes
from accentvote.config import Settings, get_settings
from accentvote.core.region_catalog import DEFAULT_REGION_CATALOG
from accentvote.core.repository_protocols import Clock, ItemCatalog, VoterIdentity
from accentvote.infrastructure.clock import SystemClock
from accentvote.infrastructure.database import DatabaseSessionManager
from accentvote.infrastructure.observability import setup_logging
from accentvote.services.distribution_reader import DistributionReader
from accentvote.services.item_catalog import SqlItemCatalog
from accentvote.services.rate_limiter import RateLimiter
from accentvote.services.tabulation_engine import TabulationEngine, TabulationPolicy

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler may need, built once per process."""
    db: DatabaseSessionManager
    rate_limiter: RateLimiter
    engine: TabulationEngine
    reader: DistributionReader
    identity: VoterIdentity
    submitter: ClientAddress = field(default_factory=ClientAddress)

    async def close(self) -> None:
        self.rate_limiter.close()
        await self.db.close()


def build_services(
    settings: Settings,
    db: DatabaseSessionManager | None = None,
    item_catalog: ItemCatalog | None = None,
    clock: Clock | None = None,
) -> Services:
    """Wire the service graph from settings. Any collaborator may be supplied."""
    db = db or DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    clock = clock or SystemClock()
    rate_limiter = RateLimiter(clock)
    engine = TabulationEngine(
        db,
        item_catalog or SqlItemCatalog(db),
        rate_limiter,
        clock,
        region_catalog=DEFAULT_REGION_CATALOG,
        policy=TabulationPolicy.from_settings(settings),
    )
    reader = DistributionReader.from_settings(
        settings, db, engine.aggregates, engine.ledger, DEFAULT_REGION_CATALOG,
    )
    return Services(
        db=db,
        rate_limiter=rate_limiter,
        engine=engine,
        reader=reader,
        identity=HeaderVoterIdentity(settings.voter_key_header),
        submitter=ClientAddress(settings.client_address_header),
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        owned = getattr(app.state, "services", None) is None
        if owned:
            app.state.services = build_services(settings)
        logger.info("AccentVote API started")
        yield
        logger.info("AccentVote API shutting down")
        if owned:
            await app.state.services.close()
            app.state.services = None

    app = FastAPI(title="AccentVote API", version=__version__, lifespan=lifespan)
    app.state.services = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(votes.router)
    app.include_router(analytics.router)

    register_error_handlers(app)
    return app


app = create_app()
