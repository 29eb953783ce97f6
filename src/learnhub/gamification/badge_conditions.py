"""Badge condition evaluators.

Each supported ``BadgeCondition`` maps to a function of
``(LearnerStats, condition_value) -> bool``. Conditions without an
evaluator are unsupported: they never grant a badge.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.enums import BadgeCondition
from learnhub.db.models import Certificate, Enrollment, ProgressRecord, Review, Streak, UserPoints

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LearnerStats:
    lessons_completed: int = 0
    courses_completed: int = 0
    total_points: int = 0
    current_streak: int = 0
    reviews_written: int = 0
    certificates_earned: int = 0


Evaluator = Callable[[LearnerStats, int], bool]

_EVALUATORS: dict[BadgeCondition, Evaluator] = {}


def evaluator(condition: BadgeCondition) -> Callable[[Evaluator], Evaluator]:
    """Register ``fn`` as the evaluator for ``condition``."""

    def register(fn: Evaluator) -> Evaluator:
        _EVALUATORS[condition] = fn
        return fn

    return register


@evaluator(BadgeCondition.FIRST_LESSON)
def _first_lesson(stats: LearnerStats, _value: int) -> bool:
    return stats.lessons_completed >= 1


@evaluator(BadgeCondition.FIRST_COURSE)
def _first_course(stats: LearnerStats, _value: int) -> bool:
    return stats.courses_completed >= 1


@evaluator(BadgeCondition.LESSONS_COMPLETED)
def _lessons_completed(stats: LearnerStats, value: int) -> bool:
    return stats.lessons_completed >= value


@evaluator(BadgeCondition.COURSES_COMPLETED)
def _courses_completed(stats: LearnerStats, value: int) -> bool:
    return stats.courses_completed >= value


@evaluator(BadgeCondition.TOTAL_POINTS)
def _total_points(stats: LearnerStats, value: int) -> bool:
    return stats.total_points >= value


@evaluator(BadgeCondition.STREAK_DAYS)
def _streak_days(stats: LearnerStats, value: int) -> bool:
    return stats.current_streak >= value


@evaluator(BadgeCondition.REVIEWS_WRITTEN)
def _reviews_written(stats: LearnerStats, value: int) -> bool:
    return stats.reviews_written >= value


@evaluator(BadgeCondition.CERTIFICATES_EARNED)
def _certificates_earned(stats: LearnerStats, value: int) -> bool:
    return stats.certificates_earned >= value


def is_supported(condition: str) -> bool:
    try:
        return BadgeCondition(condition) in _EVALUATORS
    except ValueError:
        return False


UNSUPPORTED_CONDITIONS = frozenset(c for c in BadgeCondition if c not in _EVALUATORS)


def evaluate(condition: str, condition_value: int | None, stats: LearnerStats) -> bool:
    """Whether ``stats`` satisfies a badge condition. A missing value counts as 0."""
    try:
        fn = _EVALUATORS.get(BadgeCondition(condition))
    except ValueError:
        fn = None
    if fn is None:
        logger.debug("Skipping unsupported badge condition %s", condition)
        return False
    return fn(stats, condition_value or 0)


async def load_learner_stats(db: AsyncSession, user_id: int) -> LearnerStats:
    """Snapshot the counters every evaluator reads, in one pass."""

    async def count(stmt) -> int:  # type: ignore[no-untyped-def]
        return (await db.execute(stmt)).scalar_one()

    lessons = await count(
        select(func.count()).select_from(ProgressRecord).where(
            ProgressRecord.user_id == user_id,
            ProgressRecord.is_completed.is_(True),
        )
    )
    courses = await count(
        select(func.count()).select_from(Enrollment).where(
            Enrollment.user_id == user_id,
            Enrollment.completed_at.is_not(None),
        )
    )
    reviews = await count(select(func.count()).select_from(Review).where(Review.user_id == user_id))
    certificates = await count(
        select(func.count()).select_from(Certificate).where(Certificate.user_id == user_id)
    )
    total_points = (
        await db.execute(select(UserPoints.total_points).where(UserPoints.user_id == user_id))
    ).scalar_one_or_none()
    streak = (
        await db.execute(select(Streak.current_streak).where(Streak.user_id == user_id))
    ).scalar_one_or_none()

    return LearnerStats(
        lessons_completed=lessons,
        courses_completed=courses,
        total_points=total_points or 0,
        current_streak=streak or 0,
        reviews_written=reviews,
        certificates_earned=certificates,
    )
