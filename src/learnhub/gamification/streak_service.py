"""Daily activity streaks.

A streak advances at most once per UTC calendar day. Updates are a
compare-and-set on ``last_activity_date``: of two concurrent requests for
the same user only one changes the row and awards points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.enums import PointTransactionType
from learnhub.db.models import Streak
from learnhub.gamification.points_service import award_points

logger = logging.getLogger(__name__)

STREAK_BONUS_INTERVAL = 7


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass(frozen=True)
class StreakTransition:
    """What should happen to a streak given the days since the last activity."""

    current: int
    longest: int
    start: date
    daily_points: bool
    bonus: bool


def next_streak(streak: Streak | None, today: date) -> StreakTransition | None:
    """Pure transition function; None means "already counted today"."""
    if streak is None:
        return StreakTransition(current=1, longest=1, start=today, daily_points=True, bonus=False)

    days_diff = (today - streak.last_activity_date).days
    if days_diff <= 0:
        return None
    if days_diff == 1:
        current = streak.current_streak + 1
        return StreakTransition(
            current=current,
            longest=max(streak.longest_streak, current),
            start=streak.streak_start_date,
            daily_points=True,
            bonus=current % STREAK_BONUS_INTERVAL == 0,
        )
    return StreakTransition(
        current=1,
        longest=max(streak.longest_streak, 1),
        start=today,
        daily_points=True,
        bonus=False,
    )


async def _create_streak(db: AsyncSession, user_id: int, today: date) -> bool:
    """Insert the first streak row. False if another request created it first."""
    try:
        async with db.begin_nested():
            db.add(Streak(
                user_id=user_id,
                current_streak=1,
                longest_streak=1,
                last_activity_date=today,
                streak_start_date=today,
            ))
    except IntegrityError:
        return False
    return True


async def update_streak(db: AsyncSession, user_id: int, today: date | None = None) -> int:
    """Record activity for ``today`` (UTC) and return the current streak length.

    Awards DAILY_LOGIN on every counted day and STREAK_BONUS on each multiple
    of seven. Does not commit.
    """
    today = today or utc_today()
    streak = await db.get(Streak, user_id, populate_existing=True)
    transition = next_streak(streak, today)
    if transition is None:
        # Already counted today.
        return streak.current_streak if streak is not None else 0

    if streak is None:
        if not await _create_streak(db, user_id, today):
            streak = await db.get(Streak, user_id, populate_existing=True)
            return streak.current_streak if streak else 0
    else:
        result = await db.execute(
            update(Streak)
            .where(
                Streak.user_id == user_id,
                Streak.last_activity_date == streak.last_activity_date,
            )
            .values(
                current_streak=transition.current,
                longest_streak=transition.longest,
                last_activity_date=today,
                streak_start_date=transition.start,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # Lost the race: another request already counted today.
            streak = await db.get(Streak, user_id, populate_existing=True)
            return streak.current_streak if streak else 0

    if transition.daily_points:
        await award_points(db, user_id, PointTransactionType.DAILY_LOGIN, "Daily activity")
    if transition.bonus:
        await award_points(
            db,
            user_id,
            PointTransactionType.STREAK_BONUS,
            f"{transition.current}-day streak bonus",
            metadata={"streak": transition.current},
        )
        logger.info("User %s reached a %s-day streak", user_id, transition.current)

    return transition.current
