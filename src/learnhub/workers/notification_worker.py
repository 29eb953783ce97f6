"""Notification arq worker.

Consumes domain events from the Redis stream written by ``EventBus`` and
runs the daily notification jobs (progress reminders, cleanup of old read
notifications).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

import redis.asyncio as aioredis
from arq import cron
from arq.connections import RedisSettings
from pydantic import ValidationError

from learnhub.config import get_settings
from learnhub.database import close_db, get_session, init_db
from learnhub.events.handlers import dispatch
from learnhub.events.schemas import parse_event
from learnhub.middleware.logging import setup_logging
from learnhub.notifications.service import delete_old_notifications
from learnhub.notifications.triggers import send_progress_reminders

logger = logging.getLogger(__name__)

READ_COUNT = 50
READ_BLOCK_MS = 5000


async def handle_message(fields: dict[str, str]) -> bool:
    """Process one stream entry. Returns False when a handler failed.

    Malformed and unknown events are logged and skipped. A failed handler is
    logged and not retried: notifications are best effort.
    """
    name = fields.get("event", "")
    try:
        event = parse_event(name, fields.get("data", "{}"))
    except (KeyError, ValidationError):
        logger.error("Dropping malformed event %r: %s", name, fields.get("data"))
        return True

    try:
        async for db in get_session():
            await dispatch(db, event)
    except Exception:
        logger.exception("Handler for %s (%s) failed", event.name, event.event_id)
        return False
    return True


async def ensure_group(redis_client: aioredis.Redis, stream: str, group: str) -> None:
    try:
        await redis_client.xgroup_create(stream, group, id="0", mkstream=True)
    except aioredis.ResponseError as e:
        if "BUSYGROUP" not in str(e):
            raise


async def consume_events(ctx: dict) -> None:  # type: ignore[type-arg]
    """Main consumer loop over the domain event stream."""
    redis_client: aioredis.Redis = ctx["redis"]
    settings = get_settings()
    stream, group = settings.events_stream, settings.events_consumer_group

    while True:
        try:
            batches = await redis_client.xreadgroup(
                groupname=group,
                consumername=settings.events_consumer_name,
                streams={stream: ">"},
                count=READ_COUNT,
                block=READ_BLOCK_MS,
            )
        except aioredis.ResponseError as e:
            logger.error("XREADGROUP error: %s", e)
            await asyncio.sleep(1)
            continue

        for _stream_name, messages in batches or []:
            for msg_id, fields in messages:
                await handle_message(fields)
                await redis_client.xack(stream, group, msg_id)


async def startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Open DB and Redis, create the consumer group and start consuming."""
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)

    redis_client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )
    await ensure_group(redis_client, settings.events_stream, settings.events_consumer_group)

    ctx["redis"] = redis_client
    ctx["consumer_task"] = asyncio.create_task(consume_events(ctx), name="domain-event-consumer")
    logger.info("Notification worker started (consumer=%s)", settings.events_consumer_name)


async def shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    task: asyncio.Task[None] | None = ctx.get("consumer_task")
    if task:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    redis_client: aioredis.Redis | None = ctx.get("redis")
    if redis_client:
        await redis_client.aclose()
    await close_db()
    logger.info("Notification worker shut down")


async def progress_reminders(ctx: dict) -> int:  # type: ignore[type-arg]
    """Daily: remind learners who stalled partway through a course."""
    settings = get_settings()
    sent = 0
    async for db in get_session():
        sent = await send_progress_reminders(db, settings.progress_reminder_inactive_days)
        await db.commit()
    return sent


async def cleanup_notifications(ctx: dict) -> int:  # type: ignore[type-arg]
    """Daily: delete read notifications past the retention window."""
    settings = get_settings()
    deleted = 0
    async for db in get_session():
        deleted = await delete_old_notifications(db, settings.notification_retention_days)
        await db.commit()
    if deleted:
        logger.info("Deleted %d old notifications", deleted)
    return deleted


class WorkerSettings:
    """arq worker settings for the notification worker."""

    functions = [progress_reminders, cleanup_notifications]
    cron_jobs = [
        cron(progress_reminders, hour={9}, minute={0}),
        cron(cleanup_notifications, hour={3}, minute={30}),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
    max_jobs = 4
