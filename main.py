"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.core.config import settings
from src.core.database import DATABASE_URL, create_schema, engine, is_sqlite_url
from src.core.exceptions import register_exception_handlers
from src.core.logging_config import configure_logging
from src.modules.bookings.router import admin_router as admin_bookings_router
from src.modules.bookings.router import router as bookings_router
from src.modules.scheduling.admin_router import router as admin_scheduling_router
from src.modules.scheduling.router import router as scheduling_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # SQLite has no migration run in front of it; PostgreSQL schemas come from alembic.
    if is_sqlite_url(DATABASE_URL):
        await create_schema(engine)
        logger.info("Created SQLite schema for %s", DATABASE_URL)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(scheduling_router)
    app.include_router(bookings_router)
    app.include_router(admin_scheduling_router)
    app.include_router(admin_bookings_router)

    return app


app = create_app()
