"""FastAPI application for the relationship decision engine."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from action_scheduler.service import SchedulingService
from decision_engine.clients.postgres_client import PostgresClient
from decision_engine.repository import DecisionRepository
from decision_engine.service import DecisionService

from .config import get_settings
from .routes.decisions import router as decisions_router
from .routes.health import router as health_router
from .routes.scheduling import router as scheduling_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize persistent clients and services at startup, clean up at shutdown."""
    settings = get_settings()

    logger.info("lifespan.startup", database_ssl=settings.DATABASE_SSL)

    postgres = PostgresClient(settings.DATABASE_URL, ssl_required=settings.DATABASE_SSL)
    await postgres.connect()
    if await postgres.verify_connectivity():
        logger.info("lifespan.postgres_ready")
    else:
        logger.warning("lifespan.postgres_connectivity_failed")

    repository = DecisionRepository(postgres)

    # Store on app.state for request handlers. The scheduling service holds
    # the per-relationship locks, so exactly one instance serves all requests.
    app.state.postgres = postgres
    app.state.decision_service = DecisionService(repository)
    app.state.scheduling_service = SchedulingService(repository)

    logger.info("lifespan.ready")
    yield

    # Shutdown
    logger.info("lifespan.shutdown")
    await postgres.close()


app = FastAPI(
    title="decision-engine",
    description="Lane classification, action scoring, best-action selection and batch scheduling",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(decisions_router)
app.include_router(scheduling_router)
