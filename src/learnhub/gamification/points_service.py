"""Points ledger and per-user aggregates.

``award_points`` is not idempotent: callers guard against double awards
(lesson completion checks ``ProgressRecord.points_awarded``, badges rely on
the user_badges unique constraint, streaks on the daily compare-and-set).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.enums import PointTransactionType
from learnhub.db.models import PointTransaction, Streak, UserBadge, UserPoints
from learnhub.errors import InternalError
from learnhub.gamification.levels import compute_level

logger = logging.getLogger(__name__)

POINT_VALUES: dict[PointTransactionType, int] = {
    PointTransactionType.LESSON_COMPLETED: 10,
    PointTransactionType.COURSE_COMPLETED: 100,
    PointTransactionType.REVIEW_WRITTEN: 15,
    PointTransactionType.DAILY_LOGIN: 5,
    PointTransactionType.STREAK_BONUS: 20,
    PointTransactionType.FIRST_TIME_BONUS: 50,
    PointTransactionType.BADGE_EARNED: 25,
    PointTransactionType.ADMIN_ADJUSTMENT: 0,
}

# Transaction type -> category subtotal column on user_points.
# Types missing here only move total_points.
CATEGORY_COLUMNS: dict[PointTransactionType, str] = {
    PointTransactionType.LESSON_COMPLETED: "lesson_points",
    PointTransactionType.COURSE_COMPLETED: "course_points",
    PointTransactionType.STREAK_BONUS: "streak_points",
    PointTransactionType.BADGE_EARNED: "badge_points",
    PointTransactionType.REVIEW_WRITTEN: "review_points",
}


async def get_user_points(db: AsyncSession, user_id: int) -> UserPoints | None:
    result = await db.execute(
        select(UserPoints).where(UserPoints.user_id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _increment_totals(
    db: AsyncSession,
    user_id: int,
    points: int,
    category: str | None,
) -> UserPoints:
    """Atomically add ``points`` to the total (and one category), creating the row if needed."""
    values: dict[str, Any] = {"total_points": UserPoints.total_points + points}
    if category is not None:
        values[category] = getattr(UserPoints, category) + points

    stmt = (
        update(UserPoints)
        .where(UserPoints.user_id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount == 0:
        row = UserPoints(user_id=user_id, total_points=points)
        if category is not None:
            setattr(row, category, points)
        try:
            async with db.begin_nested():
                db.add(row)
        except IntegrityError:
            # Another transaction created the row first; retry as an increment.
            await db.execute(stmt)

    gp = await get_user_points(db, user_id)
    if gp is None:
        raise InternalError("Point total missing after update")
    return gp


async def award_points(
    db: AsyncSession,
    user_id: int,
    type_: PointTransactionType,
    description: str,
    points: int | None = None,
    metadata: dict[str, Any] | None = None,
) -> int:
    """Record a point transaction and update the user's aggregate.

    ``points`` overrides the fixed value for ``type_`` (badge rewards, admin
    adjustments). Returns the number of points awarded. Does not commit.
    """
    amount = POINT_VALUES[type_] if points is None else points
    now = datetime.now(timezone.utc)

    db.add(PointTransaction(
        user_id=user_id,
        points=amount,
        type=type_.value,
        description=description,
        transaction_metadata=metadata or {},
        created_at=now,
    ))
    await db.flush()

    gp = await _increment_totals(db, user_id, amount, CATEGORY_COLUMNS.get(type_))
    old_level = gp.level
    level_info = compute_level(gp.total_points)
    gp.level = level_info["level"]
    gp.current_level_points = level_info["current_level_points"]
    gp.points_to_next_level = level_info["points_to_next_level"]
    gp.updated_at = now
    await db.flush()

    if gp.level > old_level:
        logger.info("User %s reached level %s (total=%s)", user_id, gp.level, gp.total_points)

    return amount


async def get_profile(db: AsyncSession, user_id: int) -> dict:
    """Points, level, streak and badge count, with defaults for a brand-new user."""
    gp = await get_user_points(db, user_id)
    streak = await db.get(Streak, user_id)
    badge_count = (
        await db.execute(select(func.count()).select_from(UserBadge).where(UserBadge.user_id == user_id))
    ).scalar_one()

    if gp is None:
        points = {
            "total_points": 0,
            "lesson_points": 0,
            "course_points": 0,
            "streak_points": 0,
            "badge_points": 0,
            "review_points": 0,
            **compute_level(0),
        }
    else:
        points = {
            "total_points": gp.total_points,
            "lesson_points": gp.lesson_points,
            "course_points": gp.course_points,
            "streak_points": gp.streak_points,
            "badge_points": gp.badge_points,
            "review_points": gp.review_points,
            "level": gp.level,
            "current_level_points": gp.current_level_points,
            "points_to_next_level": gp.points_to_next_level,
        }

    return {
        "user_id": user_id,
        **points,
        "current_streak": streak.current_streak if streak else 0,
        "longest_streak": streak.longest_streak if streak else 0,
        "badges_earned": badge_count,
    }


async def get_point_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[PointTransaction], int]:
    """Paginated transactions, most recent first."""
    total = (
        await db.execute(
            select(func.count()).select_from(PointTransaction).where(PointTransaction.user_id == user_id)
        )
    ).scalar_one()

    result = await db.execute(
        select(PointTransaction)
        .where(PointTransaction.user_id == user_id)
        .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total
