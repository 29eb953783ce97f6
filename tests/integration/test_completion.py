"""Integration: completion percentage over the published lesson set."""

from __future__ import annotations

import pytest
from sqlalchemy import update

from learnhub.courses.completion import count_lessons, get_completion_percentage, get_course_progress
from learnhub.db.models import Lesson, ProgressRecord
from learnhub.errors import NotFoundError


async def _complete(db, user_id, lessons) -> None:
    db.add_all([ProgressRecord(user_id=user_id, lesson_id=lesson.id, is_completed=True) for lesson in lessons])
    await db.commit()


async def test_no_lessons_is_zero(db_session, make_user, make_course):
    user = await make_user()
    course, _ = await make_course(0)
    assert await get_completion_percentage(db_session, user.id, course.id) == 0.0


async def test_partial_completion(db_session, make_user, make_course):
    user = await make_user()
    course, lessons = await make_course(4)
    await _complete(db_session, user.id, lessons[:3])

    assert await get_completion_percentage(db_session, user.id, course.id) == 75.0


async def test_incomplete_records_do_not_count(db_session, make_user, make_course):
    user = await make_user()
    course, lessons = await make_course(2)
    db_session.add(ProgressRecord(user_id=user.id, lesson_id=lessons[0].id, is_completed=False, seconds_watched=90))
    await db_session.commit()

    assert await count_lessons(db_session, user.id, course.id) == (0, 2)


async def test_unpublished_lessons_are_excluded(db_session, make_user, make_course):
    user = await make_user()
    course, lessons = await make_course(4, unpublished_lessons=3)
    await _complete(db_session, user.id, lessons[:2])

    assert await count_lessons(db_session, user.id, course.id) == (2, 4)
    assert await get_completion_percentage(db_session, user.id, course.id) == 50.0


async def test_progress_on_later_unpublished_lesson_is_ignored(db_session, make_user, make_course):
    user = await make_user()
    course, lessons = await make_course(4)
    await _complete(db_session, user.id, lessons[:2])
    await db_session.execute(update(Lesson).where(Lesson.id == lessons[0].id).values(is_published=False))
    await db_session.commit()

    assert await count_lessons(db_session, user.id, course.id) == (1, 3)


async def test_other_users_progress_is_ignored(db_session, make_user, make_course):
    user = await make_user()
    other = await make_user(name="Grace")
    course, lessons = await make_course(2)
    await _complete(db_session, other.id, lessons)

    assert await get_completion_percentage(db_session, user.id, course.id) == 0.0


async def test_unknown_course(db_session, make_user):
    user = await make_user()
    with pytest.raises(NotFoundError):
        await get_completion_percentage(db_session, user.id, 9999)


async def test_course_progress_summary(db_session, make_user, make_course):
    user = await make_user()
    course, lessons = await make_course(3)
    await _complete(db_session, user.id, lessons[:2])

    summary = await get_course_progress(db_session, user.id, course.id)

    assert summary == {
        "course_id": course.id,
        "total_lessons": 3,
        "completed_lessons": 2,
        "percentage": 66.67,
        "certificate_eligible": False,
    }
