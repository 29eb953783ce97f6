"""Integration: points ledger and aggregates."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from learnhub.db.enums import PointTransactionType
from learnhub.db.models import PointTransaction
from learnhub.gamification.points_service import award_points, get_point_history, get_profile, get_user_points


async def _ledger_sum(db, user_id: int) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(PointTransaction.points), 0)).where(PointTransaction.user_id == user_id)
    )
    return result.scalar_one()


class TestAwardPoints:
    async def test_lesson_completed_updates_total_and_category(self, db_session, make_user):
        user = await make_user()
        awarded = await award_points(db_session, user.id, PointTransactionType.LESSON_COMPLETED, "Lesson 1")
        await db_session.commit()

        gp = await get_user_points(db_session, user.id)
        assert awarded == 10
        assert gp.total_points == 10
        assert gp.lesson_points == 10
        assert gp.course_points == 0

    async def test_uncategorised_type_only_moves_total(self, db_session, make_user):
        user = await make_user()
        await award_points(db_session, user.id, PointTransactionType.DAILY_LOGIN, "Daily activity")
        await db_session.commit()

        gp = await get_user_points(db_session, user.id)
        assert gp.total_points == 5
        assert (gp.lesson_points, gp.course_points, gp.streak_points, gp.badge_points, gp.review_points) == (
            0, 0, 0, 0, 0,
        )

    async def test_override_amount(self, db_session, make_user):
        user = await make_user()
        await award_points(db_session, user.id, PointTransactionType.BADGE_EARNED, "Badge", points=40)
        await db_session.commit()

        gp = await get_user_points(db_session, user.id)
        assert gp.badge_points == 40

    async def test_total_equals_ledger_sum(self, db_session, make_user):
        user = await make_user()
        for type_ in (
            PointTransactionType.LESSON_COMPLETED,
            PointTransactionType.LESSON_COMPLETED,
            PointTransactionType.COURSE_COMPLETED,
            PointTransactionType.REVIEW_WRITTEN,
            PointTransactionType.STREAK_BONUS,
        ):
            await award_points(db_session, user.id, type_, type_.value)
        await award_points(db_session, user.id, PointTransactionType.ADMIN_ADJUSTMENT, "Refund", points=-30)
        await db_session.commit()

        gp = await get_user_points(db_session, user.id)
        assert gp.total_points == await _ledger_sum(db_session, user.id) == 125

    async def test_level_recomputed(self, db_session, make_user):
        user = await make_user()
        await award_points(db_session, user.id, PointTransactionType.COURSE_COMPLETED, "Course")
        await award_points(db_session, user.id, PointTransactionType.COURSE_COMPLETED, "Course")
        await award_points(db_session, user.id, PointTransactionType.COURSE_COMPLETED, "Course")
        await award_points(db_session, user.id, PointTransactionType.COURSE_COMPLETED, "Course")
        await db_session.commit()

        gp = await get_user_points(db_session, user.id)
        assert gp.total_points == 400
        assert gp.level == 3
        assert gp.current_level_points == 0
        assert gp.points_to_next_level == 500

    async def test_negative_total_is_level_1(self, db_session, make_user):
        user = await make_user()
        await award_points(db_session, user.id, PointTransactionType.ADMIN_ADJUSTMENT, "Penalty", points=-50)
        await db_session.commit()

        gp = await get_user_points(db_session, user.id)
        assert gp.total_points == -50
        assert gp.level == 1


class TestProfileAndHistory:
    async def test_profile_defaults_for_new_user(self, db_session, make_user):
        user = await make_user()
        profile = await get_profile(db_session, user.id)
        assert profile["total_points"] == 0
        assert profile["level"] == 1
        assert profile["points_to_next_level"] == 100
        assert profile["current_streak"] == 0
        assert profile["badges_earned"] == 0

    async def test_history_is_paginated_most_recent_first(self, db_session, make_user):
        user = await make_user()
        for i in range(5):
            await award_points(db_session, user.id, PointTransactionType.LESSON_COMPLETED, f"Lesson {i}")
        await db_session.commit()

        page1, total = await get_point_history(db_session, user.id, page=1, per_page=2)
        page3, _ = await get_point_history(db_session, user.id, page=3, per_page=2)
        assert total == 5
        assert [t.description for t in page1] == ["Lesson 4", "Lesson 3"]
        assert [t.description for t in page3] == ["Lesson 0"]


@pytest.mark.parametrize("points", [1, 99, 100])
async def test_first_award_creates_aggregate_row(db_session, make_user, points):
    user = await make_user()
    assert await get_user_points(db_session, user.id) is None
    await award_points(db_session, user.id, PointTransactionType.ADMIN_ADJUSTMENT, "Seed", points=points)
    await db_session.commit()
    assert (await get_user_points(db_session, user.id)).total_points == points
