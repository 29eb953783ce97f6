"""Leaderboards by points, streak, lessons and badges."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.enums import LeaderboardPeriod, LeaderboardType, UserRole
from learnhub.db.models import PointTransaction, ProgressRecord, Streak, User, UserBadge, UserPoints


def period_start(period: LeaderboardPeriod, now: datetime | None = None) -> datetime | None:
    """Start of the current period in UTC; None for ALL_TIME."""
    now = now or datetime.now(timezone.utc)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == LeaderboardPeriod.DAILY:
        return midnight
    if period == LeaderboardPeriod.WEEKLY:
        return midnight - timedelta(days=midnight.weekday())
    if period == LeaderboardPeriod.MONTHLY:
        return midnight.replace(day=1)
    return None


def _score_query(type_: LeaderboardType, since: datetime | None) -> Select:
    if type_ == LeaderboardType.TOTAL_POINTS and since is not None:
        score = func.sum(PointTransaction.points).label("score")
        return (
            select(PointTransaction.user_id.label("user_id"), score)
            .where(PointTransaction.created_at >= since)
            .group_by(PointTransaction.user_id)
        )
    if type_ == LeaderboardType.TOTAL_POINTS:
        return select(UserPoints.user_id.label("user_id"), UserPoints.total_points.label("score"))
    if type_ == LeaderboardType.CURRENT_STREAK:
        return select(Streak.user_id.label("user_id"), Streak.current_streak.label("score"))
    if type_ == LeaderboardType.LESSONS_COMPLETED:
        return (
            select(ProgressRecord.user_id.label("user_id"), func.count(ProgressRecord.id).label("score"))
            .where(ProgressRecord.is_completed.is_(True))
            .group_by(ProgressRecord.user_id)
        )
    return (
        select(UserBadge.user_id.label("user_id"), func.count(UserBadge.id).label("score"))
        .group_by(UserBadge.user_id)
    )


async def get_leaderboard(
    db: AsyncSession,
    type_: LeaderboardType = LeaderboardType.TOTAL_POINTS,
    period: LeaderboardPeriod = LeaderboardPeriod.ALL_TIME,
    limit: int = 10,
) -> list[dict]:
    """Top learners for a metric. Admins are excluded; ties rank by user id.

    Only TOTAL_POINTS is period-aware; the other metrics are current values.
    """
    scores = _score_query(type_, period_start(period)).subquery()
    result = await db.execute(
        select(User.id, User.name, scores.c.score)
        .join(scores, scores.c.user_id == User.id)
        .where(User.role != UserRole.ADMIN.value, scores.c.score > 0)
        .order_by(scores.c.score.desc(), User.id.asc())
        .limit(limit)
    )
    return [
        {"rank": i, "user_id": uid, "name": name or "Anonymous", "score": int(score)}
        for i, (uid, name, score) in enumerate(result.all(), start=1)
    ]
