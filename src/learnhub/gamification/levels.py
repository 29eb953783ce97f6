"""Level curve: level n starts at (n-1)^2 * 100 points.

    level = floor(sqrt(total / 100)) + 1

Computed with integer square roots so boundaries are exact.
"""

from __future__ import annotations

from math import isqrt

POINTS_PER_LEVEL_UNIT = 100


def points_for_level(level: int) -> int:
    """Total points at which ``level`` starts."""
    if level <= 1:
        return 0
    return (level - 1) ** 2 * POINTS_PER_LEVEL_UNIT


def calculate_level(total_points: int) -> int:
    """Level for a point total. Totals below zero (admin deductions) stay at level 1."""
    if total_points <= 0:
        return 1
    return isqrt(total_points // POINTS_PER_LEVEL_UNIT) + 1


def compute_level(total_points: int) -> dict:
    """Level info for a point total, in the shape stored on ``user_points``."""
    level = calculate_level(total_points)
    return {
        "level": level,
        "current_level_points": total_points - points_for_level(level),
        "points_to_next_level": points_for_level(level + 1) - total_points,
    }


def level_table(max_level: int = 20) -> list[dict]:
    """Thresholds for levels 1..max_level."""
    return [
        {
            "level": n,
            "points_required": points_for_level(n),
            "points_to_next": points_for_level(n + 1) - points_for_level(n),
        }
        for n in range(1, max_level + 1)
    ]
