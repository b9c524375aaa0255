"""FastAPI application factory and lifespan management."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cirrus.config import settings
from cirrus.db.engine import create_db_engine, create_session_factory
from cirrus.logging_config import configure_logging

# Configure logging at import time
configure_logging(log_level=settings.log_level, json_output=not settings.local_mode)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown resources."""
    db_url = settings.effective_database_url
    engine = create_db_engine(db_url)

    # Auto-create tables for SQLite (local dev, no Alembic migrations)
    if "sqlite" in db_url:
        from cirrus.db.base import Base
        import cirrus.db.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQLite tables created (local mode)")

    app.state.db_engine = engine
    app.state.db_session_factory = create_session_factory(engine)

    # Redis is optional; without it jobs live only in the jobs table
    app.state.redis = None
    if not settings.local_mode:
        try:
            import redis.asyncio as aioredis
            app.state.redis = aioredis.from_url(settings.redis_url, decode_responses=True)
        except Exception:
            logger.warning("Redis not available, jobs will not be pushed to workers")

    from cirrus.clock.scheduler import run_clock
    clock_task = asyncio.create_task(run_clock(app, settings))
    app.state.clock_task = clock_task

    logger.info("Cirrus API started (db=%s)", "sqlite" if "sqlite" in db_url else "postgresql")
    yield

    clock_task.cancel()
    try:
        await clock_task
    except asyncio.CancelledError:
        pass
    if app.state.redis:
        await app.state.redis.close()
    await engine.dispose()
    logger.info("Cirrus API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Cirrus API",
        version="0.1.0",
        description="Application lifecycle control plane.",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    from cirrus.api.middleware.trace_id import TraceIdMiddleware
    from cirrus.api.middleware.auth import AuthMiddleware
    app.add_middleware(AuthMiddleware)
    app.add_middleware(TraceIdMiddleware)

    from cirrus.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    from cirrus.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
