"""FastAPI dependency injection providers."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request

from cirrus.errors.exceptions import AuthenticationError
from cirrus.logging_config import bind_request_context
from cirrus.models.actor import Actor
from cirrus.services.collaborators import Collaborators


async def get_db(request: Request) -> AsyncGenerator:
    """Yield a database session from the app's session factory."""
    session_factory = request.app.state.db_session_factory
    async with session_factory() as session:
        yield session


async def get_redis(request: Request):
    """Return the Redis connection pool from app state."""
    return getattr(request.app.state, "redis", None)


def get_trace_id(request: Request) -> str:
    """Extract trace_id from request state (set by middleware)."""
    return getattr(request.state, "trace_id", "unknown")


async def get_current_user(request: Request) -> dict:
    """Return the authenticated user dict or raise 401."""
    user = getattr(request.state, "user", {})
    if not user or user.get("sub") in ("anonymous", ""):
        raise AuthenticationError("Authentication required")
    if "_auth_error" in user:
        raise AuthenticationError(user["_auth_error"])
    return user


async def get_actor(request: Request, user: dict = Depends(get_current_user)) -> Actor:
    actor = Actor.from_user(user)
    bind_request_context(get_trace_id(request), user_id=actor.user_id)
    return actor


async def get_collaborators(redis=Depends(get_redis)) -> Collaborators:
    return Collaborators.with_redis(redis)

