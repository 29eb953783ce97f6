"""Administrative gamification operations: badge catalog edits, manual point
adjustments and platform-wide statistics."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.enums import LeaderboardPeriod, LeaderboardType, PointTransactionType, UserRole
from learnhub.db.models import Badge, Streak, User, UserBadge, UserPoints
from learnhub.errors import ConflictError, InternalError, NotFoundError
from learnhub.gamification.leaderboard import get_leaderboard
from learnhub.gamification.points_service import award_points, get_user_points

logger = logging.getLogger(__name__)


async def list_all_badges(db: AsyncSession) -> list[Badge]:
    result = await db.execute(select(Badge).order_by(Badge.id))
    return list(result.scalars().all())


async def create_badge(db: AsyncSession, fields: dict[str, Any]) -> Badge:
    """Insert a badge definition. Names are unique. Commits."""
    badge = Badge(**fields)
    db.add(badge)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("A badge with this name already exists") from e
    logger.info("Badge %s created (%s)", badge.id, badge.name)
    return badge


async def update_badge(db: AsyncSession, badge_id: int, changes: dict[str, Any]) -> Badge:
    badge = await db.get(Badge, badge_id)
    if badge is None:
        raise NotFoundError("Badge not found")
    for field, value in changes.items():
        setattr(badge, field, value)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("A badge with this name already exists") from e
    return badge


async def delete_badge(db: AsyncSession, badge_id: int) -> None:
    """Delete a badge definition; earned copies go with it."""
    badge = await db.get(Badge, badge_id)
    if badge is None:
        raise NotFoundError("Badge not found")
    await db.delete(badge)
    await db.commit()
    logger.info("Badge %s deleted", badge_id)


async def adjust_points(db: AsyncSession, admin_id: int, user_id: int, points: int, reason: str) -> UserPoints:
    """Manual credit or debit recorded as ADMIN_ADJUSTMENT. Commits."""
    if await db.get(User, user_id) is None:
        raise NotFoundError("User not found")
    await award_points(
        db,
        user_id,
        PointTransactionType.ADMIN_ADJUSTMENT,
        reason,
        points=points,
        metadata={"admin_id": admin_id},
    )
    await db.commit()
    logger.info("Admin %s adjusted user %s by %+d points", admin_id, user_id, points)
    gp = await get_user_points(db, user_id)
    if gp is None:
        raise InternalError("Point total missing after update")
    return gp


async def get_gamification_stats(db: AsyncSession) -> dict:
    total_users = (
        await db.execute(select(func.count()).select_from(User).where(User.role != UserRole.ADMIN.value))
    ).scalar_one()
    learners_with_points = (await db.execute(select(func.count()).select_from(UserPoints))).scalar_one()
    total_points = (await db.execute(select(func.coalesce(func.sum(UserPoints.total_points), 0)))).scalar_one()
    badges_awarded = (await db.execute(select(func.count()).select_from(UserBadge))).scalar_one()
    active_streaks = (
        await db.execute(select(func.count()).select_from(Streak).where(Streak.current_streak > 0))
    ).scalar_one()

    earned = func.count(UserBadge.id).label("earned_count")
    popular = await db.execute(
        select(Badge.id, Badge.name, Badge.icon, earned)
        .join(UserBadge, UserBadge.badge_id == Badge.id)
        .group_by(Badge.id, Badge.name, Badge.icon)
        .order_by(earned.desc(), Badge.id)
        .limit(5)
    )

    return {
        "total_users": total_users,
        "learners_with_points": learners_with_points,
        "engagement_rate": round(learners_with_points / total_users * 100, 1) if total_users else 0.0,
        "total_points_awarded": int(total_points),
        "badges_awarded": badges_awarded,
        "active_streaks": active_streaks,
        "top_learners": await get_leaderboard(db, LeaderboardType.TOTAL_POINTS, LeaderboardPeriod.ALL_TIME, 5),
        "popular_badges": [
            {"id": bid, "name": name, "icon": icon, "earned_count": count}
            for bid, name, icon, count in popular.all()
        ],
    }
