"""Typed notification triggers for learning lifecycle events."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.courses.completion import get_completion_percentage
from learnhub.db.enums import EnrollmentStatus, NotificationType
from learnhub.db.models import Course, Enrollment, Notification
from learnhub.notifications.service import create_notification, send_bulk_notification

logger = logging.getLogger(__name__)

REMINDER_MAX_COMPLETION = 90.0


async def notify_enrollment(db: AsyncSession, user_id: int, course: Course) -> Notification:
    return await create_notification(
        db,
        user_id,
        NotificationType.COURSE_ENROLLMENT,
        "Enrollment confirmed",
        f'You are now enrolled in "{course.title}". Happy learning!',
        metadata={"course_id": course.id, "course_slug": course.slug, "action_path": f"/course/{course.slug}"},
        send_email=True,
    )


async def notify_course_completion(db: AsyncSession, user_id: int, course: Course) -> Notification:
    return await create_notification(
        db,
        user_id,
        NotificationType.COURSE_COMPLETION,
        "Course completed!",
        f'Congratulations on completing "{course.title}".',
        metadata={"course_id": course.id, "course_slug": course.slug},
        send_email=True,
    )


async def notify_certificate_issued(
    db: AsyncSession,
    user_id: int,
    course: Course,
    certificate_number: str,
) -> Notification:
    return await create_notification(
        db,
        user_id,
        NotificationType.CERTIFICATE_ISSUED,
        "Your certificate is ready",
        f'Your certificate for "{course.title}" has been issued (No. {certificate_number}).',
        metadata={
            "course_id": course.id,
            "course_title": course.title,
            "certificate_number": certificate_number,
            "action_path": f"/certificates/{certificate_number}",
        },
        send_email=True,
    )


async def notify_new_course(db: AsyncSession, course: Course) -> int:
    """Announce a published course to every non-admin user."""
    return await send_bulk_notification(
        db,
        None,
        NotificationType.NEW_COURSE_AVAILABLE,
        "New course available",
        f'"{course.title}" is now available. Check it out!',
        metadata={"course_id": course.id, "course_slug": course.slug, "action_path": f"/course/{course.slug}"},
        send_email=True,
    )


async def send_progress_reminders(db: AsyncSession, inactive_days: int = 7) -> int:
    """Nudge learners enrolled for a while who started but have not finished.

    Targets ACTIVE enrollments older than ``inactive_days`` with completion
    strictly between 0% and 90%. Does not commit.
    """
    cutoff = datetime.now(timezone.utc) - timedelta(days=inactive_days)
    result = await db.execute(
        select(Enrollment, Course)
        .join(Course, Course.id == Enrollment.course_id)
        .where(
            Enrollment.status == EnrollmentStatus.ACTIVE.value,
            Enrollment.enrolled_at < cutoff,
            Enrollment.completed_at.is_(None),
        )
    )

    sent = 0
    for enrollment, course in result.all():
        percentage = await get_completion_percentage(db, enrollment.user_id, course.id)
        if not 0 < percentage < REMINDER_MAX_COMPLETION:
            continue
        await create_notification(
            db,
            enrollment.user_id,
            NotificationType.PROGRESS_REMINDER,
            "Keep going!",
            f'You are {round(percentage)}% through "{course.title}". Pick up where you left off.',
            metadata={
                "course_id": course.id,
                "completion": round(percentage),
                "action_path": f"/course/{course.slug}/learn",
            },
            send_email=True,
        )
        sent += 1

    logger.info("Sent %d progress reminders", sent)
    return sent
