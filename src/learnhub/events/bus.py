"""Domain event publishing.

Events go to a single Redis stream consumed by the notification worker.
Without Redis (or when XADD fails) they are handled in-process on a
background task. ``publish`` never raises.
"""

from __future__ import annotations

import logging
from typing import Any

from learnhub import background
from learnhub.config import get_settings
from learnhub.events.handlers import dispatch_in_new_session
from learnhub.events.schemas import DomainEvent

logger = logging.getLogger(__name__)


class EventBus:
    """Publishes domain events to the stream, or dispatches them locally."""

    def __init__(self, redis: Any | None = None) -> None:
        self.redis = redis

    async def publish(self, event: DomainEvent) -> None:
        if self.redis is not None:
            settings = get_settings()
            try:
                await self.redis.xadd(
                    settings.events_stream,
                    {"event": event.name, "data": event.model_dump_json()},
                    maxlen=settings.events_stream_maxlen,
                    approximate=True,
                )
                return
            except Exception:
                logger.warning("Failed to publish %s to stream; handling in-process", event.name, exc_info=True)

        self._dispatch_locally(event)

    def _dispatch_locally(self, event: DomainEvent) -> None:
        background.spawn(dispatch_in_new_session(event), name=f"event:{event.name}:{event.event_id}")
