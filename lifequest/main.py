"""FastAPI application entrypoint."""

import random
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from lifequest.api.health import router as health_router
from lifequest.api.rpg import engine_error_handler, router as rpg_router
from lifequest.config import settings
from lifequest.core.clock import Clock, SystemClock
from lifequest.core.errors import EngineError
from lifequest.core.locks import CharacterLocks
from lifequest.core.logging import get_logger, setup_logging
from lifequest.db.database import engine as db_engine
from lifequest.db.models import Base
from lifequest.services.container import Catalogs, load_catalogs

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


def init_app_state(
    app: FastAPI,
    catalogs: Catalogs,
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
) -> None:
    """Store what outlives a request on ``app.state``.

    Services themselves are built per request around that request's session
    (see lifequest.api.rpg.get_services).
    """
    app.state.catalogs = catalogs
    app.state.clock = clock or SystemClock(settings.TIMEZONE)
    app.state.rng = rng or random.Random()
    app.state.character_locks = CharacterLocks()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    logger.info("Loading catalogs from %s...", settings.CATALOG_DIR)
    catalogs = load_catalogs(settings.CATALOG_DIR)
    logger.info(
        "Catalogs loaded: %d skill trees, %d enemies, %d activities",
        catalogs.skill_trees.count(),
        catalogs.enemies.count(),
        catalogs.activities.count(),
    )
    init_app_state(app, catalogs)

    yield

    logger.info("Shutting down...")
    db_engine.dispose()


app = FastAPI(title="LifeQuest RPG Engine", lifespan=lifespan)

app.add_exception_handler(EngineError, engine_error_handler)
app.include_router(health_router)
app.include_router(rpg_router)
