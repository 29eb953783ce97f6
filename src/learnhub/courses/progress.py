"""Per-lesson progress ledger.

Recording progress may award LESSON_COMPLETED (first completion of a
lesson), COURSE_COMPLETED (first time the course reaches 100%) and any
badges those points unlock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import ColumnElement, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.courses.completion import CERTIFICATE_THRESHOLD, get_completion_percentage
from learnhub.courses.enrollment import get_active_enrollment
from learnhub.db.enums import PointTransactionType
from learnhub.db.models import Badge, Course, Enrollment, Lesson, Module, ProgressRecord
from learnhub.errors import ConflictError, NotFoundError
from learnhub.gamification.badge_service import check_and_award_badges
from learnhub.gamification.points_service import award_points

logger = logging.getLogger(__name__)


@dataclass
class ProgressResult:
    progress: ProgressRecord
    course_id: int
    completion: float
    points_awarded: int = 0
    course_completed: bool = False
    badges: list[Badge] = field(default_factory=list)

    @property
    def certificate_eligible(self) -> bool:
        return self.completion >= CERTIFICATE_THRESHOLD


async def _resolve_lesson(db: AsyncSession, user_id: int, lesson_id: int) -> tuple[Lesson, Course, Enrollment]:
    """The lesson, its course, and the user's ACTIVE enrollment in it."""
    row = (
        await db.execute(
            select(Lesson, Course)
            .join(Module, Module.id == Lesson.module_id)
            .join(Course, Course.id == Module.course_id)
            .where(Lesson.id == lesson_id)
        )
    ).first()
    if row is None:
        raise NotFoundError("Lesson not found or access denied")
    lesson, course = row
    enrollment = await get_active_enrollment(db, user_id, course.id)
    if enrollment is None:
        raise NotFoundError("Lesson not found or access denied")
    return lesson, course, enrollment


async def _claim(db: AsyncSession, model: type, row_id: int, guard: ColumnElement[bool], **values: object) -> bool:
    """Compare-and-set a one-time flag; True only for the request that flipped it."""
    result = await db.execute(
        update(model)
        .where(model.id == row_id, guard)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _get_or_create_record(db: AsyncSession, user_id: int, lesson_id: int) -> ProgressRecord:
    result = await db.execute(
        select(ProgressRecord).where(ProgressRecord.user_id == user_id, ProgressRecord.lesson_id == lesson_id)
    )
    record = result.scalar_one_or_none()
    if record is not None:
        return record

    record = ProgressRecord(user_id=user_id, lesson_id=lesson_id)
    try:
        async with db.begin_nested():
            db.add(record)
    except IntegrityError:
        result = await db.execute(
            select(ProgressRecord).where(ProgressRecord.user_id == user_id, ProgressRecord.lesson_id == lesson_id)
        )
        existing = result.scalar_one_or_none()
        if existing is None:
            raise ConflictError("Progress update conflicted, retry") from None
        return existing
    return record


async def record_progress(
    db: AsyncSession,
    user_id: int,
    lesson_id: int,
    is_completed: bool,
    seconds_watched: int = 0,
) -> ProgressResult:
    """Upsert the (user, lesson) record and apply any resulting awards. Commits."""
    lesson, course, enrollment = await _resolve_lesson(db, user_id, lesson_id)
    now = datetime.now(timezone.utc)

    record = await _get_or_create_record(db, user_id, lesson.id)
    record.seconds_watched = max(seconds_watched, 0)
    record.last_watched_at = now
    if is_completed and not record.is_completed:
        record.completed_at = now
    elif not is_completed:
        record.completed_at = None
    record.is_completed = is_completed
    await db.flush()

    points = 0
    if is_completed and await _claim(db, ProgressRecord, record.id, ProgressRecord.points_awarded.is_(False),
                                     points_awarded=True):
        record.points_awarded = True
        points += await award_points(
            db,
            user_id,
            PointTransactionType.LESSON_COMPLETED,
            f"Completed lesson: {lesson.title}",
            metadata={"lesson_id": lesson.id, "course_id": course.id},
        )

    completion = await get_completion_percentage(db, user_id, course.id)
    course_completed = False
    if completion >= 100 and await _claim(db, Enrollment, enrollment.id, Enrollment.completed_at.is_(None),
                                          completed_at=now):
        enrollment.completed_at = now
        course_completed = True
        points += await award_points(
            db,
            user_id,
            PointTransactionType.COURSE_COMPLETED,
            f"Completed course: {course.title}",
            metadata={"course_id": course.id},
        )
        logger.info("User %s completed course %s", user_id, course.id)

    await db.commit()

    badges = await check_and_award_badges(db, user_id) if points else []
    return ProgressResult(
        progress=record,
        course_id=course.id,
        completion=completion,
        points_awarded=points,
        course_completed=course_completed,
        badges=badges,
    )


async def list_course_progress(db: AsyncSession, user_id: int, course_id: int) -> list[ProgressRecord]:
    """The user's records for every lesson of a course (published or not)."""
    result = await db.execute(
        select(ProgressRecord)
        .join(Lesson, Lesson.id == ProgressRecord.lesson_id)
        .join(Module, Module.id == Lesson.module_id)
        .where(ProgressRecord.user_id == user_id, Module.course_id == course_id)
        .order_by(Module.position, Lesson.position, Lesson.id)
    )
    return list(result.scalars().all())
