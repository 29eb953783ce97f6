"""Enrollment: the gate for progress tracking and certificates."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.enums import EnrollmentStatus
from learnhub.db.models import Course, Enrollment
from learnhub.errors import ConflictError, IneligibleError, NotFoundError
from learnhub.events.bus import EventBus
from learnhub.events.schemas import EnrollmentCreated

logger = logging.getLogger(__name__)


async def get_enrollment(db: AsyncSession, user_id: int, course_id: int) -> Enrollment | None:
    result = await db.execute(
        select(Enrollment).where(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
    )
    return result.scalar_one_or_none()


async def get_active_enrollment(db: AsyncSession, user_id: int, course_id: int) -> Enrollment | None:
    enrollment = await get_enrollment(db, user_id, course_id)
    if enrollment is None or enrollment.status != EnrollmentStatus.ACTIVE.value:
        return None
    return enrollment


async def enroll_user(
    db: AsyncSession,
    events: EventBus,
    user_id: int,
    course_id: int,
    *,
    paid: bool = False,
) -> Enrollment:
    """Create an ACTIVE enrollment and commit.

    Paid courses require ``paid=True`` (set by the payment confirmation
    path). Raises NotFoundError for unknown or unpublished courses,
    IneligibleError when payment is required, ConflictError if already
    enrolled.
    """
    course = await db.get(Course, course_id)
    if course is None or not course.is_published:
        raise NotFoundError("Course not found")
    if course.price > 0 and not paid:
        raise IneligibleError("This course requires payment", price=str(course.price))
    if await get_enrollment(db, user_id, course_id) is not None:
        raise ConflictError("Already enrolled in this course")

    enrollment = Enrollment(
        user_id=user_id,
        course_id=course_id,
        status=EnrollmentStatus.ACTIVE.value,
        enrolled_at=datetime.now(timezone.utc),
    )
    db.add(enrollment)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Already enrolled in this course") from e

    logger.info("User %s enrolled in course %s", user_id, course_id)
    await events.publish(EnrollmentCreated(user_id=user_id, course_id=course_id, enrollment_id=enrollment.id))
    return enrollment
