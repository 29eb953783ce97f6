"""Badge awarding with duplicate prevention."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.enums import PointTransactionType
from learnhub.db.models import Badge, UserBadge
from learnhub.gamification.badge_conditions import evaluate, load_learner_stats
from learnhub.gamification.points_service import award_points

logger = logging.getLogger(__name__)


async def get_earned_badge_ids(db: AsyncSession, user_id: int) -> set[int]:
    result = await db.execute(select(UserBadge.badge_id).where(UserBadge.user_id == user_id))
    return set(result.scalars().all())


async def _grant(db: AsyncSession, user_id: int, badge: Badge) -> bool:
    """Insert the user badge and its point award in one savepoint.

    Returns False when a concurrent request already granted it.
    """
    try:
        async with db.begin_nested():
            db.add(UserBadge(user_id=user_id, badge_id=badge.id, earned_at=datetime.now(timezone.utc)))
            await db.flush()
            await award_points(
                db,
                user_id,
                PointTransactionType.BADGE_EARNED,
                f"Badge earned: {badge.name}",
                points=badge.points,
                metadata={"badge_id": badge.id, "badge_name": badge.name},
            )
    except IntegrityError:
        logger.info("Badge %s already granted to user %s", badge.id, user_id)
        return False
    return True


async def check_and_award_badges(db: AsyncSession, user_id: int) -> list[Badge]:
    """Grant every active, unheld badge whose condition the learner now meets.

    Stats are snapshotted once, so points from badges granted here do not
    unlock further badges until the next call. Commits the session.
    """
    stats = await load_learner_stats(db, user_id)
    earned = await get_earned_badge_ids(db, user_id)

    result = await db.execute(select(Badge).where(Badge.is_active.is_(True)).order_by(Badge.id))
    candidates = [b for b in result.scalars().all() if b.id not in earned]

    awarded: list[Badge] = []
    for badge in candidates:
        if not evaluate(badge.condition, badge.condition_value, stats):
            continue
        if await _grant(db, user_id, badge):
            awarded.append(badge)

    await db.commit()
    if awarded:
        logger.info("Awarded badges %s to user %s", [b.name for b in awarded], user_id)
    return awarded


async def get_user_badges(db: AsyncSession, user_id: int) -> list[tuple[UserBadge, Badge]]:
    """Earned badges with their definitions, most recent first."""
    result = await db.execute(
        select(UserBadge, Badge)
        .join(Badge, Badge.id == UserBadge.badge_id)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at.desc(), UserBadge.id.desc())
    )
    return [(ub, b) for ub, b in result.all()]
