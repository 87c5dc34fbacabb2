"""FastAPI dependency injection providers."""

from collections.abc import AsyncGenerator

from fastapi import Request


async def get_db(request: Request) -> AsyncGenerator:
    """Yield a database session from the app's session factory."""
    session_factory = request.app.state.db_session_factory
    async with session_factory() as session:
        yield session
