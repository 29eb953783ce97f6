"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from learnhub.database import get_session as _get_session
from learnhub.events.bus import EventBus
from learnhub.redis_client import get_optional_redis

get_db = _get_session


async def get_redis_dep() -> AsyncGenerator[object, None]:
    """Yield the Redis client (or None when Redis is not configured)."""
    yield get_optional_redis()


async def get_event_bus() -> AsyncGenerator[EventBus, None]:
    """Yield an event bus bound to the shared Redis pool."""
    yield EventBus(get_optional_redis())
