"""Domain event handlers.

Run by the stream consumer in the worker, or in-process as background
tasks when no Redis broker is configured. Each handler commits its own work.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.database import get_session
from learnhub.db.models import Course
from learnhub.events.schemas import CertificateIssued, DomainEvent, EnrollmentCreated
from learnhub.gamification.badge_service import check_and_award_badges
from learnhub.notifications.triggers import (
    notify_certificate_issued,
    notify_course_completion,
    notify_enrollment,
)

logger = logging.getLogger(__name__)

Handler = Callable[[AsyncSession, DomainEvent], Awaitable[None]]


async def handle_certificate_issued(db: AsyncSession, event: CertificateIssued) -> None:
    """Completion and certificate notifications, then certificate badges."""
    course = await db.get(Course, event.course_id)
    if course is None:
        logger.warning("Course %s vanished before certificate event %s", event.course_id, event.event_id)
        return
    await notify_course_completion(db, event.user_id, course)
    await notify_certificate_issued(db, event.user_id, course, event.certificate_number)
    await db.commit()
    await check_and_award_badges(db, event.user_id)


async def handle_enrollment_created(db: AsyncSession, event: EnrollmentCreated) -> None:
    course = await db.get(Course, event.course_id)
    if course is None:
        return
    await notify_enrollment(db, event.user_id, course)
    await db.commit()


HANDLERS: dict[str, Handler] = {
    CertificateIssued.name: handle_certificate_issued,  # type: ignore[dict-item]
    EnrollmentCreated.name: handle_enrollment_created,  # type: ignore[dict-item]
}


async def dispatch(db: AsyncSession, event: DomainEvent) -> bool:
    """Run the handler for ``event``. False when no handler is registered."""
    handler = HANDLERS.get(event.name)
    if handler is None:
        logger.warning("No handler for event %s", event.name)
        return False
    await handler(db, event)
    return True


async def dispatch_in_new_session(event: DomainEvent) -> None:
    """Handle an event on its own session; failures are logged, never raised."""
    try:
        async for db in get_session():
            await dispatch(db, event)
    except Exception:
        logger.exception("Handling %s (%s) failed", event.name, event.event_id)
