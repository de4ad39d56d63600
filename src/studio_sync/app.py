"""FastAPI application factory and lifespan wiring."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from studio_sync import __version__
from studio_sync.config import load_settings
from studio_sync.database.client import CosmosClient
from studio_sync.database.store import CosmosDocumentStore
from studio_sync.health import check_emulators
from studio_sync.logging import configure_logging
from studio_sync.routes import actions, health, sessions
from studio_sync.services.sessions import ActionSessionManager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from studio_sync.config import Settings

logger = logging.getLogger(__name__)


async def init_database(settings: Settings) -> CosmosClient:
    """Connect to Cosmos DB; raises ConnectionError when it is not configured."""
    cosmos = CosmosClient(settings.cosmos)
    await cosmos.initialize()
    logger.info(
        "Cosmos DB connected — database=%s container=%s",
        settings.cosmos.database,
        settings.cosmos.container,
    )
    return cosmos


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = load_settings()
    configure_logging(settings.app.log_level)
    logger.info("Web app starting — env=%s", settings.app.env)

    if settings.app.is_development and not await check_emulators(settings):
        msg = "Cosmos DB emulator is not reachable"
        raise RuntimeError(msg)

    cosmos = await init_database(settings)
    store = CosmosDocumentStore(cosmos.database, settings.cosmos.container)
    session_manager = ActionSessionManager(
        store, retention=settings.app.session_retention
    )

    app.state.settings = settings
    app.state.cosmos = cosmos
    app.state.store = store
    app.state.sessions = session_manager
    app.state.start_time = time.monotonic()

    yield

    logger.info("Web app shutting down")
    await session_manager.close()
    await cosmos.close()


def create_app() -> FastAPI:
    """Build the FastAPI app with all routers attached."""
    app = FastAPI(title="studio-sync", version=__version__, lifespan=lifespan)
    app.include_router(health.router)
    app.include_router(actions.router)
    app.include_router(sessions.router)
    return app
