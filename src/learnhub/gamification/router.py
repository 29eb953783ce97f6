"""Gamification API endpoints for learners and public catalog reads."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.auth.dependencies import get_current_user
from learnhub.database import get_session
from learnhub.db.enums import LeaderboardPeriod, LeaderboardType
from learnhub.db.models import Badge, Streak, User
from learnhub.gamification.badge_conditions import is_supported
from learnhub.gamification.badge_service import check_and_award_badges, get_user_badges
from learnhub.gamification.leaderboard import get_leaderboard
from learnhub.gamification.levels import level_table
from learnhub.gamification.points_service import get_point_history, get_profile
from learnhub.gamification.schemas import (
    AllBadgesResponse,
    AllLevelsResponse,
    BadgeResponse,
    EarnedBadgeResponse,
    GamificationProfileResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    LevelEntry,
    PointHistoryEntry,
    PointHistoryResponse,
    StreakResponse,
    UserBadgesResponse,
)
from learnhub.gamification.streak_service import update_streak

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


def badge_response(badge: Badge) -> BadgeResponse:
    return BadgeResponse(
        id=badge.id,
        name=badge.name,
        description=badge.description,
        icon=badge.icon,
        rarity=badge.rarity,
        points=badge.points,
        condition=badge.condition,
        condition_value=badge.condition_value,
        is_active=badge.is_active,
        is_supported=is_supported(badge.condition),
    )


# ── Public endpoints ──


@router.get("/badges", response_model=AllBadgesResponse)
async def list_badges(db: AsyncSession = Depends(get_session)):
    """Active badge catalog."""
    result = await db.execute(select(Badge).where(Badge.is_active.is_(True)).order_by(Badge.points, Badge.id))
    return AllBadgesResponse(badges=[badge_response(b) for b in result.scalars()])


@router.get("/levels", response_model=AllLevelsResponse)
async def list_levels(max_level: int = Query(20, ge=1, le=100)):
    return AllLevelsResponse(levels=[LevelEntry(**row) for row in level_table(max_level)])


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    type: LeaderboardType = Query(LeaderboardType.TOTAL_POINTS),  # noqa: A002
    period: LeaderboardPeriod = Query(LeaderboardPeriod.ALL_TIME),
    limit: int = Query(10, ge=1, le=100),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    entries = await get_leaderboard(db, type, period, limit)
    return LeaderboardResponse(
        type=type.value,
        period=period.value,
        entries=[LeaderboardEntry(**e) for e in entries],
    )


# ── Authenticated endpoints ──


@router.get("/users/me/gamification", response_model=GamificationProfileResponse)
async def my_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Points, level, streak and badge count for the current user."""
    return await get_profile(db, user.id)


@router.get("/users/me/points/history", response_model=PointHistoryResponse)
async def my_point_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    transactions, total = await get_point_history(db, user.id, page, per_page)
    return PointHistoryResponse(
        entries=[
            PointHistoryEntry(
                id=t.id,
                points=t.points,
                type=t.type,
                description=t.description,
                metadata=t.transaction_metadata or {},
                created_at=t.created_at,
            )
            for t in transactions
        ],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/users/me/badges", response_model=UserBadgesResponse)
async def my_badges(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    earned = await get_user_badges(db, user.id)
    return UserBadgesResponse(
        earned=[EarnedBadgeResponse(badge=badge_response(b), earned_at=ub.earned_at) for ub, b in earned],
        total_earned=len(earned),
    )


@router.post("/users/me/streak", response_model=StreakResponse)
async def record_activity(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Count today toward the user's daily streak (called on session start)."""
    await update_streak(db, user.id)
    await db.commit()
    badges = await check_and_award_badges(db, user.id)
    streak = await db.get(Streak, user.id, populate_existing=True)
    return StreakResponse(
        current_streak=streak.current_streak if streak else 0,
        longest_streak=streak.longest_streak if streak else 0,
        badges_earned=[b.name for b in badges],
    )
