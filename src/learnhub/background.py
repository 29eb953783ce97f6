"""Fire-and-forget task tracking.

Tasks spawned here are detached from the request that created them: their
failures are logged and never propagate. A strong reference is kept until
each task finishes so the event loop cannot garbage-collect it, and
``drain()`` lets shutdown hooks (and tests) wait for in-flight work.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)

_pending: set[asyncio.Task[Any]] = set()


def _on_done(task: asyncio.Task[Any]) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background task %s failed", task.get_name(), exc_info=exc)


def spawn(coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
    """Schedule a coroutine on the running loop without awaiting it."""
    task = asyncio.create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


async def drain(timeout: float | None = None) -> None:
    """Wait until every tracked background task has finished.

    Tasks spawned by other background tasks are waited for as well.
    """
    while _pending:
        await asyncio.wait(set(_pending), timeout=timeout)
        if timeout is not None:
            break
