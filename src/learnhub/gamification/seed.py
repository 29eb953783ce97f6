"""Default badge catalog. Seeding is idempotent by badge name."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.models import Badge
from learnhub.gamification.badge_conditions import is_supported

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    # First steps
    {"name": "First Lesson", "description": "Complete your first lesson", "icon": "🎯",
     "rarity": "COMMON", "points": 10, "condition": "FIRST_LESSON"},
    {"name": "First Course", "description": "Complete your first full course", "icon": "🏆",
     "rarity": "COMMON", "points": 25, "condition": "FIRST_COURSE"},
    # Lessons
    {"name": "Active Learner", "description": "Complete 10 lessons", "icon": "📚",
     "rarity": "COMMON", "points": 15, "condition": "LESSONS_COMPLETED", "condition_value": 10},
    {"name": "Knowledge Devourer", "description": "Complete 50 lessons", "icon": "🧠",
     "rarity": "UNCOMMON", "points": 30, "condition": "LESSONS_COMPLETED", "condition_value": 50},
    {"name": "Master of Learning", "description": "Complete 100 lessons", "icon": "🎓",
     "rarity": "RARE", "points": 50, "condition": "LESSONS_COMPLETED", "condition_value": 100},
    # Courses
    {"name": "Explorer", "description": "Complete 3 courses", "icon": "🗺️",
     "rarity": "COMMON", "points": 20, "condition": "COURSES_COMPLETED", "condition_value": 3},
    {"name": "Collector", "description": "Complete 10 courses", "icon": "📋",
     "rarity": "UNCOMMON", "points": 40, "condition": "COURSES_COMPLETED", "condition_value": 10},
    {"name": "Polymath", "description": "Complete 25 courses", "icon": "🌟",
     "rarity": "RARE", "points": 75, "condition": "COURSES_COMPLETED", "condition_value": 25},
    # Streaks
    {"name": "On Fire", "description": "Keep a 7-day streak", "icon": "🔥",
     "rarity": "COMMON", "points": 25, "condition": "STREAK_DAYS", "condition_value": 7},
    {"name": "Unstoppable", "description": "Keep a 30-day streak", "icon": "⚡",
     "rarity": "UNCOMMON", "points": 50, "condition": "STREAK_DAYS", "condition_value": 30},
    {"name": "Consistency Legend", "description": "Keep a 100-day streak", "icon": "👑",
     "rarity": "EPIC", "points": 100, "condition": "STREAK_DAYS", "condition_value": 100},
    # Points
    {"name": "Climbing", "description": "Reach 500 points", "icon": "⬆️",
     "rarity": "COMMON", "points": 20, "condition": "TOTAL_POINTS", "condition_value": 500},
    {"name": "High Performer", "description": "Reach 2,000 points", "icon": "💎",
     "rarity": "UNCOMMON", "points": 40, "condition": "TOTAL_POINTS", "condition_value": 2000},
    {"name": "Learning Elite", "description": "Reach 5,000 points", "icon": "💠",
     "rarity": "RARE", "points": 75, "condition": "TOTAL_POINTS", "condition_value": 5000},
    {"name": "Supernova", "description": "Reach 10,000 points", "icon": "🌠",
     "rarity": "EPIC", "points": 150, "condition": "TOTAL_POINTS", "condition_value": 10000},
    {"name": "Grand Master", "description": "Reach 25,000 points", "icon": "🏅",
     "rarity": "LEGENDARY", "points": 250, "condition": "TOTAL_POINTS", "condition_value": 25000},
    # Reviews
    {"name": "Constructive Critic", "description": "Write 5 reviews", "icon": "✍️",
     "rarity": "COMMON", "points": 15, "condition": "REVIEWS_WRITTEN", "condition_value": 5},
    {"name": "Community Voice", "description": "Write 25 reviews", "icon": "📢",
     "rarity": "UNCOMMON", "points": 35, "condition": "REVIEWS_WRITTEN", "condition_value": 25},
    # Certificates
    {"name": "Certified", "description": "Earn your first certificate", "icon": "📜",
     "rarity": "COMMON", "points": 30, "condition": "CERTIFICATES_EARNED", "condition_value": 1},
    {"name": "Achievement Hunter", "description": "Earn 5 certificates", "icon": "🥇",
     "rarity": "UNCOMMON", "points": 60, "condition": "CERTIFICATES_EARNED", "condition_value": 5},
    {"name": "Honor Academy", "description": "Earn 15 certificates", "icon": "🎖️",
     "rarity": "RARE", "points": 120, "condition": "CERTIFICATES_EARNED", "condition_value": 15},
    # Special (no evaluator yet, seeded inactive)
    {"name": "Perfectionist", "description": "Finish a course with a perfect score", "icon": "💯",
     "rarity": "RARE", "points": 50, "condition": "PERFECT_COURSE", "condition_value": 1},
    {"name": "Night Owl", "description": "Study 10 times after 10 PM", "icon": "🦉",
     "rarity": "UNCOMMON", "points": 30, "condition": "NIGHT_OWL", "condition_value": 10},
    {"name": "Early Bird", "description": "Study 10 times before 6 AM", "icon": "🌅",
     "rarity": "UNCOMMON", "points": 30, "condition": "EARLY_BIRD", "condition_value": 10},
    {"name": "Weekend Warrior", "description": "Study 5 weekends in a row", "icon": "⚔️",
     "rarity": "RARE", "points": 45, "condition": "WEEKEND_WARRIOR", "condition_value": 5},
]


async def seed_badges(db: AsyncSession, *, refresh: bool = False) -> int:
    """Insert missing default badges; with ``refresh`` also reset existing ones.

    Returns the number of new rows.
    """
    result = await db.execute(select(Badge))
    existing = {b.name: b for b in result.scalars().all()}

    created = 0
    for data in BADGE_SEED_DATA:
        values = {
            "condition_value": None,
            **data,
            "is_active": is_supported(data["condition"]),
        }
        badge = existing.get(data["name"])
        if badge is None:
            db.add(Badge(**values))
            created += 1
        elif refresh:
            for key, value in values.items():
                setattr(badge, key, value)

    await db.commit()
    logger.info("Seeded %d badge definitions (%d new)", len(BADGE_SEED_DATA), created)
    return created
