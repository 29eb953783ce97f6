"""Course completion percentage.

Only published lessons in published modules of a published course count,
on both sides of the ratio. Progress on a lesson that was later unpublished
is ignored.
"""

from __future__ import annotations

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.models import Course, Lesson, Module, ProgressRecord
from learnhub.errors import NotFoundError

CERTIFICATE_THRESHOLD = 80.0


def _published_lessons(course_id: int):  # type: ignore[no-untyped-def]
    return (
        select(Lesson.id)
        .join(Module, Module.id == Lesson.module_id)
        .join(Course, Course.id == Module.course_id)
        .where(
            Course.id == course_id,
            Course.is_published.is_(True),
            Module.is_published.is_(True),
            Lesson.is_published.is_(True),
        )
    )


async def count_lessons(db: AsyncSession, user_id: int, course_id: int) -> tuple[int, int]:
    """(completed, total) over the course's published lesson set."""
    published = _published_lessons(course_id).subquery()
    total = (await db.execute(select(func.count()).select_from(published))).scalar_one()
    if total == 0:
        return 0, 0

    completed = (
        await db.execute(
            select(func.count())
            .select_from(ProgressRecord)
            .join(published, published.c.id == ProgressRecord.lesson_id)
            .where(and_(ProgressRecord.user_id == user_id, ProgressRecord.is_completed.is_(True)))
        )
    ).scalar_one()
    return completed, total


async def get_completion_percentage(db: AsyncSession, user_id: int, course_id: int) -> float:
    """Percentage (0-100) of the course's published lessons the user completed.

    Zero published lessons yields 0.0. Raises NotFoundError for an unknown
    course; enrollment is not checked here.
    """
    if await db.get(Course, course_id) is None:
        raise NotFoundError("Course not found")
    completed, total = await count_lessons(db, user_id, course_id)
    if total == 0:
        return 0.0
    return completed / total * 100


async def get_course_progress(db: AsyncSession, user_id: int, course_id: int) -> dict:
    if await db.get(Course, course_id) is None:
        raise NotFoundError("Course not found")
    completed, total = await count_lessons(db, user_id, course_id)
    percentage = completed / total * 100 if total else 0.0
    return {
        "course_id": course_id,
        "total_lessons": total,
        "completed_lessons": completed,
        "percentage": round(percentage, 2),
        "certificate_eligible": percentage >= CERTIFICATE_THRESHOLD,
    }
