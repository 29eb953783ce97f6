"""String enums for the values stored in ``VARCHAR`` columns."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    STUDENT = "STUDENT"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"


class EnrollmentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PointTransactionType(str, enum.Enum):
    LESSON_COMPLETED = "LESSON_COMPLETED"
    COURSE_COMPLETED = "COURSE_COMPLETED"
    REVIEW_WRITTEN = "REVIEW_WRITTEN"
    DAILY_LOGIN = "DAILY_LOGIN"
    STREAK_BONUS = "STREAK_BONUS"
    FIRST_TIME_BONUS = "FIRST_TIME_BONUS"
    BADGE_EARNED = "BADGE_EARNED"
    ADMIN_ADJUSTMENT = "ADMIN_ADJUSTMENT"


class BadgeRarity(str, enum.Enum):
    COMMON = "COMMON"
    UNCOMMON = "UNCOMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"


class BadgeCondition(str, enum.Enum):
    LESSONS_COMPLETED = "LESSONS_COMPLETED"
    COURSES_COMPLETED = "COURSES_COMPLETED"
    STREAK_DAYS = "STREAK_DAYS"
    TOTAL_POINTS = "TOTAL_POINTS"
    REVIEWS_WRITTEN = "REVIEWS_WRITTEN"
    CERTIFICATES_EARNED = "CERTIFICATES_EARNED"
    FIRST_LESSON = "FIRST_LESSON"
    FIRST_COURSE = "FIRST_COURSE"
    PERFECT_COURSE = "PERFECT_COURSE"
    NIGHT_OWL = "NIGHT_OWL"
    EARLY_BIRD = "EARLY_BIRD"
    WEEKEND_WARRIOR = "WEEKEND_WARRIOR"


class NotificationType(str, enum.Enum):
    WELCOME = "WELCOME"
    COURSE_ENROLLMENT = "COURSE_ENROLLMENT"
    COURSE_COMPLETION = "COURSE_COMPLETION"
    NEW_COURSE_AVAILABLE = "NEW_COURSE_AVAILABLE"
    PROGRESS_REMINDER = "PROGRESS_REMINDER"
    CERTIFICATE_ISSUED = "CERTIFICATE_ISSUED"
    PROMOTION = "PROMOTION"
    SYSTEM_ANNOUNCEMENT = "SYSTEM_ANNOUNCEMENT"


class LeaderboardType(str, enum.Enum):
    TOTAL_POINTS = "TOTAL_POINTS"
    CURRENT_STREAK = "CURRENT_STREAK"
    LESSONS_COMPLETED = "LESSONS_COMPLETED"
    BADGES_EARNED = "BADGES_EARNED"


class LeaderboardPeriod(str, enum.Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    ALL_TIME = "ALL_TIME"
