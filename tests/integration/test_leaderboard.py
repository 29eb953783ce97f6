"""Integration: leaderboards."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from learnhub.db.enums import LeaderboardPeriod, LeaderboardType, PointTransactionType
from learnhub.db.models import Badge, PointTransaction, Streak, UserBadge
from learnhub.gamification.leaderboard import get_leaderboard
from learnhub.gamification.points_service import award_points


async def _give(db, user, points: int) -> None:
    await award_points(db, user.id, PointTransactionType.ADMIN_ADJUSTMENT, "test", points=points)
    await db.commit()


async def test_ordering_and_admin_exclusion(db_session, make_user):
    low = await make_user(name="Low")
    high = await make_user(name="High")
    admin = await make_user(name="Root", role="ADMIN")
    await _give(db_session, low, 50)
    await _give(db_session, high, 300)
    await _give(db_session, admin, 9999)

    board = await get_leaderboard(db_session)

    assert [(e["rank"], e["user_id"], e["score"]) for e in board] == [(1, high.id, 300), (2, low.id, 50)]


async def test_ties_rank_by_user_id(db_session, make_user):
    first = await make_user()
    second = await make_user()
    await _give(db_session, second, 40)
    await _give(db_session, first, 40)

    board = await get_leaderboard(db_session)
    assert [e["user_id"] for e in board] == [first.id, second.id]


async def test_limit(db_session, make_user):
    for points in (10, 20, 30):
        await _give(db_session, await make_user(), points)

    board = await get_leaderboard(db_session, limit=2)
    assert [e["score"] for e in board] == [30, 20]


async def test_period_counts_recent_transactions_only(db_session, make_user):
    veteran = await make_user(name="Veteran")
    newcomer = await make_user(name="Newcomer")
    await _give(db_session, veteran, 500)
    await _give(db_session, newcomer, 20)
    old = datetime.now(timezone.utc) - timedelta(days=60)
    result = await db_session.execute(select(PointTransaction).where(PointTransaction.user_id == veteran.id))
    for tx in result.scalars():
        tx.created_at = old
    await db_session.commit()

    monthly = await get_leaderboard(db_session, LeaderboardType.TOTAL_POINTS, LeaderboardPeriod.MONTHLY)
    all_time = await get_leaderboard(db_session, LeaderboardType.TOTAL_POINTS, LeaderboardPeriod.ALL_TIME)

    assert [e["user_id"] for e in monthly] == [newcomer.id]
    assert [e["user_id"] for e in all_time] == [veteran.id, newcomer.id]


async def test_streak_and_badge_boards(db_session, make_user):
    ada = await make_user()
    grace = await make_user(name="Grace")
    today = datetime.now(timezone.utc).date()
    db_session.add_all([
        Streak(user_id=ada.id, current_streak=3, longest_streak=3, last_activity_date=today, streak_start_date=today),
        Streak(user_id=grace.id, current_streak=8, longest_streak=8, last_activity_date=today, streak_start_date=today),
    ])
    badge = Badge(name="B", description="b", icon="*", condition="FIRST_LESSON")
    db_session.add(badge)
    await db_session.flush()
    db_session.add(UserBadge(user_id=ada.id, badge_id=badge.id))
    await db_session.commit()

    streaks = await get_leaderboard(db_session, LeaderboardType.CURRENT_STREAK)
    badges = await get_leaderboard(db_session, LeaderboardType.BADGES_EARNED)

    assert [e["user_id"] for e in streaks] == [grace.id, ada.id]
    assert [(e["user_id"], e["score"]) for e in badges] == [(ada.id, 1)]


async def test_leaderboard_endpoint(client, auth, db_session, make_user):
    ada = await make_user()
    await _give(db_session, ada, 10)

    resp = await client.get(
        "/api/v1/leaderboard", params={"type": "TOTAL_POINTS", "period": "WEEKLY"}, headers=auth(ada)
    )

    body = resp.json()
    assert (body["type"], body["period"]) == ("TOTAL_POINTS", "WEEKLY")
    assert body["entries"][0]["user_id"] == ada.id
