"""FastAPI application factory and lifespan management."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from podtrunk import __version__
from podtrunk.config import settings
from podtrunk.db.engine import create_db_engine, create_session_factory
from podtrunk.logging_config import configure_logging

# Configure logging at import time
configure_logging(log_level=settings.log_level, json_output=settings.json_logs and not settings.local_mode)

logger = logging.getLogger(__name__)


def build_pipeline():
    """Pipeline wired to the configured GitHub repository."""
    from podtrunk.integrations.github import GitHubClient, GitHubConfig
    from podtrunk.services.pipeline import SubmissionPipeline

    return SubmissionPipeline(GitHubClient(GitHubConfig.from_settings(settings)))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown resources."""
    db_url = settings.effective_database_url
    engine = create_db_engine(db_url)

    # Auto-create tables for SQLite (local dev, no Alembic migrations)
    if "sqlite" in db_url:
        from podtrunk.db.base import Base
        import podtrunk.db.models  # noqa: F401: register all ORM models

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQLite tables created (local mode)")

    app.state.db_engine = engine
    app.state.db_session_factory = create_session_factory(engine)

    dispatcher_task = None
    if settings.dispatcher_enabled:
        from podtrunk.workers.scheduler import run_dispatcher
        dispatcher_task = asyncio.create_task(
            run_dispatcher(app.state.db_session_factory, build_pipeline())
        )

    logger.info("podtrunk API started (db=%s)", "sqlite" if "sqlite" in db_url else "postgresql")
    yield

    # Shutdown
    if dispatcher_task:
        dispatcher_task.cancel()
        try:
            await dispatcher_task
        except asyncio.CancelledError:
            pass
    await engine.dispose()
    logger.info("podtrunk API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="podtrunk API",
        version=__version__,
        description="Publishes validated podspecs to the index repository through pull requests.",
        lifespan=lifespan,
    )

    from podtrunk.api.middleware.trace_id import TraceIdMiddleware
    app.add_middleware(TraceIdMiddleware)

    # Register error handlers
    from podtrunk.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    # Import and mount routers
    from podtrunk.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
