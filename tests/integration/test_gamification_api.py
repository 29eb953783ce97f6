"""Integration: learner-facing gamification endpoints."""

from __future__ import annotations

from learnhub.db.enums import PointTransactionType
from learnhub.gamification.points_service import award_points


async def test_profile_for_new_user(client, auth, make_user):
    user = await make_user()

    resp = await client.get("/api/v1/users/me/gamification", headers=auth(user))

    body = resp.json()
    assert body["user_id"] == user.id
    assert body["total_points"] == 0
    assert body["level"] == 1
    assert body["points_to_next_level"] == 100
    assert body["current_streak"] == 0
    assert body["badges_earned"] == 0


async def test_profile_reflects_awards(client, auth, db_session, make_user):
    user = await make_user()
    await award_points(db_session, user.id, PointTransactionType.COURSE_COMPLETED, "course")
    await award_points(db_session, user.id, PointTransactionType.LESSON_COMPLETED, "lesson")
    await db_session.commit()

    body = (await client.get("/api/v1/users/me/gamification", headers=auth(user))).json()

    assert body["total_points"] == 110
    assert (body["course_points"], body["lesson_points"]) == (100, 10)
    assert body["level"] == 2
    assert body["current_level_points"] == 10
    assert body["points_to_next_level"] == 290


async def test_point_history(client, auth, db_session, make_user):
    user = await make_user()
    await award_points(db_session, user.id, PointTransactionType.LESSON_COMPLETED, "first", metadata={"lesson_id": 1})
    await award_points(db_session, user.id, PointTransactionType.REVIEW_WRITTEN, "second")
    await db_session.commit()

    body = (await client.get("/api/v1/users/me/points/history", headers=auth(user))).json()

    assert body["total"] == 2
    assert [e["description"] for e in body["entries"]] == ["second", "first"]
    assert body["entries"][1]["metadata"] == {"lesson_id": 1}


async def test_record_daily_activity(client, auth, make_user):
    user = await make_user()

    first = await client.post("/api/v1/users/me/streak", headers=auth(user))
    second = await client.post("/api/v1/users/me/streak", headers=auth(user))
    profile = await client.get("/api/v1/users/me/gamification", headers=auth(user))

    assert first.json() == {"current_streak": 1, "longest_streak": 1, "badges_earned": []}
    assert second.json()["current_streak"] == 1
    assert profile.json()["total_points"] == 5


async def test_levels_table(client):
    resp = await client.get("/api/v1/levels", params={"max_level": 3})

    assert resp.json()["levels"] == [
        {"level": 1, "points_required": 0, "points_to_next": 100},
        {"level": 2, "points_required": 100, "points_to_next": 300},
        {"level": 3, "points_required": 400, "points_to_next": 500},
    ]


async def test_leaderboard_requires_auth(client):
    resp = await client.get("/api/v1/leaderboard")
    assert resp.status_code == 401
