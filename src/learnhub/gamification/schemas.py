"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from learnhub.db.enums import BadgeCondition, BadgeRarity

# --- Badges ---


class BadgeResponse(BaseModel):
    id: int
    name: str
    description: str
    icon: str
    rarity: str
    points: int
    condition: str
    condition_value: int | None = None
    is_active: bool
    is_supported: bool


class AllBadgesResponse(BaseModel):
    badges: list[BadgeResponse]


class EarnedBadgeResponse(BaseModel):
    badge: BadgeResponse
    earned_at: datetime


class UserBadgesResponse(BaseModel):
    earned: list[EarnedBadgeResponse]
    total_earned: int


class BadgeCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: str = Field(min_length=1)
    icon: str = Field(min_length=1, max_length=64)
    rarity: BadgeRarity = BadgeRarity.COMMON
    points: int = Field(default=0, ge=0, le=1000)
    condition: BadgeCondition
    condition_value: int | None = Field(default=None, ge=0)
    is_active: bool = True


class BadgeUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    description: str | None = Field(default=None, min_length=1)
    icon: str | None = Field(default=None, min_length=1, max_length=64)
    rarity: BadgeRarity | None = None
    points: int | None = Field(default=None, ge=0, le=1000)
    condition: BadgeCondition | None = None
    condition_value: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


# --- Points ---


class GamificationProfileResponse(BaseModel):
    user_id: int
    total_points: int
    lesson_points: int
    course_points: int
    streak_points: int
    badge_points: int
    review_points: int
    level: int
    current_level_points: int
    points_to_next_level: int
    current_streak: int
    longest_streak: int
    badges_earned: int


class PointHistoryEntry(BaseModel):
    id: int
    points: int
    type: str
    description: str
    metadata: dict = {}
    created_at: datetime


class PointHistoryResponse(BaseModel):
    entries: list[PointHistoryEntry]
    total: int
    page: int
    per_page: int


class PointAdjustRequest(BaseModel):
    user_id: int
    points: int = Field(ge=-10000, le=10000)
    reason: str = Field(min_length=1, max_length=500)


class PointAdjustResponse(BaseModel):
    user_id: int
    points: int
    total_points: int
    level: int


# --- Streak / levels / leaderboard ---


class StreakResponse(BaseModel):
    current_streak: int
    longest_streak: int
    badges_earned: list[str] = []


class LevelEntry(BaseModel):
    level: int
    points_required: int
    points_to_next: int


class AllLevelsResponse(BaseModel):
    levels: list[LevelEntry]


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    name: str
    score: int


class LeaderboardResponse(BaseModel):
    type: str
    period: str
    entries: list[LeaderboardEntry]


class PopularBadge(BaseModel):
    id: int
    name: str
    icon: str
    earned_count: int


class GamificationStatsResponse(BaseModel):
    total_users: int
    learners_with_points: int
    engagement_rate: float
    total_points_awarded: int
    badges_awarded: int
    active_streaks: int
    top_learners: list[LeaderboardEntry]
    popular_badges: list[PopularBadge]
