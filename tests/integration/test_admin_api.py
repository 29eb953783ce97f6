"""Integration: admin badge catalog, point adjustments, stats and broadcasts."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import select

from learnhub.db.enums import PointTransactionType
from learnhub.db.models import Badge, Notification, UserBadge
from learnhub.gamification.points_service import award_points
from learnhub.gamification.seed import BADGE_SEED_DATA

BADGE = {
    "name": "Night Shift",
    "description": "Complete 5 lessons",
    "icon": "🌙",
    "rarity": "UNCOMMON",
    "points": 40,
    "condition": "LESSONS_COMPLETED",
    "condition_value": 5,
}


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user(name="Root", role="ADMIN", email="admin@example.com")


class TestAccess:
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("GET", "/api/v1/admin/badges"),
            ("POST", "/api/v1/admin/badges/initialize"),
            ("GET", "/api/v1/admin/gamification/stats"),
            ("GET", "/api/v1/admin/notifications"),
        ],
    )
    async def test_students_are_forbidden(self, client, auth, make_user, method, path):
        student = await make_user()
        resp = await client.request(method, path, headers=auth(student))
        assert resp.status_code == 403

    async def test_anonymous_is_unauthorized(self, client):
        resp = await client.get("/api/v1/admin/badges")
        assert resp.status_code == 401


class TestBadgeCatalog:
    async def test_create_update_delete(self, client, auth, admin):
        created = await client.post("/api/v1/admin/badges", json=BADGE, headers=auth(admin))
        assert created.status_code == 201
        badge_id = created.json()["id"]
        assert created.json()["is_supported"] is True

        updated = await client.put(
            f"/api/v1/admin/badges/{badge_id}", json={"points": 55, "is_active": False}, headers=auth(admin)
        )
        assert updated.json()["points"] == 55
        assert updated.json()["is_active"] is False
        assert updated.json()["name"] == "Night Shift"

        deleted = await client.delete(f"/api/v1/admin/badges/{badge_id}", headers=auth(admin))
        assert deleted.json() == {"deleted": True, "id": badge_id}
        listing = await client.get("/api/v1/admin/badges", headers=auth(admin))
        assert listing.json()["badges"] == []

    async def test_duplicate_name_conflicts(self, client, auth, admin):
        await client.post("/api/v1/admin/badges", json=BADGE, headers=auth(admin))
        resp = await client.post("/api/v1/admin/badges", json=BADGE, headers=auth(admin))
        assert resp.status_code == 409

    async def test_invalid_condition_rejected(self, client, auth, admin):
        resp = await client.post("/api/v1/admin/badges", json={**BADGE, "condition": "MOON_PHASE"}, headers=auth(admin))
        assert resp.status_code == 422

    async def test_update_unknown_badge(self, client, auth, admin):
        resp = await client.put("/api/v1/admin/badges/999", json={"points": 1}, headers=auth(admin))
        assert resp.status_code == 404

    async def test_delete_removes_earned_copies(self, client, auth, admin, make_user, db_session, settle):
        student = await make_user()
        created = await client.post("/api/v1/admin/badges", json=BADGE, headers=auth(admin))
        db_session.add(UserBadge(user_id=student.id, badge_id=created.json()["id"]))
        await db_session.commit()

        await client.delete(f"/api/v1/admin/badges/{created.json()['id']}", headers=auth(admin))
        await settle()

        assert (await db_session.execute(select(UserBadge))).scalars().all() == []

    async def test_initialize(self, client, auth, admin, db_session, settle):
        first = await client.post("/api/v1/admin/badges/initialize", headers=auth(admin))
        second = await client.post("/api/v1/admin/badges/initialize", headers=auth(admin))

        assert first.json() == {"created": len(BADGE_SEED_DATA), "total": len(BADGE_SEED_DATA)}
        assert second.json()["created"] == 0
        await settle()
        assert len((await db_session.execute(select(Badge))).scalars().all()) == len(BADGE_SEED_DATA)

    async def test_public_catalog_hides_inactive(self, client, auth, admin, make_user):
        student = await make_user()
        await client.post("/api/v1/admin/badges/initialize", headers=auth(admin))

        public = await client.get("/api/v1/badges", headers=auth(student))
        full = await client.get("/api/v1/admin/badges", headers=auth(admin))

        assert all(b["is_active"] for b in public.json()["badges"])
        assert len(full.json()["badges"]) > len(public.json()["badges"])


class TestPoints:
    async def test_adjust_points(self, client, auth, admin, make_user, db_session):
        student = await make_user()
        await award_points(db_session, student.id, PointTransactionType.COURSE_COMPLETED, "done")
        await db_session.commit()

        resp = await client.post(
            "/api/v1/admin/points/adjust",
            json={"user_id": student.id, "points": -30, "reason": "Duplicate award"},
            headers=auth(admin),
        )

        assert resp.status_code == 200
        assert resp.json() == {"user_id": student.id, "points": -30, "total_points": 70, "level": 1}

        history = await client.get("/api/v1/users/me/points/history", headers=auth(student))
        latest = history.json()["entries"][0]
        assert latest["type"] == "ADMIN_ADJUSTMENT"
        assert latest["points"] == -30

    async def test_adjust_unknown_user(self, client, auth, admin):
        resp = await client.post(
            "/api/v1/admin/points/adjust", json={"user_id": 4040, "points": 5, "reason": "x"}, headers=auth(admin)
        )
        assert resp.status_code == 404

    async def test_stats(self, client, auth, admin, make_user, db_session):
        ada = await make_user()
        await make_user(name="Grace")
        await award_points(db_session, ada.id, PointTransactionType.LESSON_COMPLETED, "lesson")
        await db_session.commit()

        resp = await client.get("/api/v1/admin/gamification/stats", headers=auth(admin))

        body = resp.json()
        assert body["total_users"] == 2
        assert body["learners_with_points"] == 1
        assert body["engagement_rate"] == 50.0
        assert body["total_points_awarded"] == 10
        assert [e["user_id"] for e in body["top_learners"]] == [ada.id]


class TestBroadcasts:
    async def test_broadcast_skips_admins(self, client, auth, admin, make_user, db_session, settle):
        students = [await make_user(), await make_user(name="Grace")]

        resp = await client.post(
            "/api/v1/admin/notifications",
            json={"title": "Maintenance", "message": "Down at 2am"},
            headers=auth(admin),
        )

        assert resp.json() == {"sent": 2}
        await settle()
        recipients = sorted((await db_session.execute(select(Notification.user_id))).scalars().all())
        assert recipients == sorted(s.id for s in students)

    async def test_targeted_with_email(self, client, auth, admin, make_user, email_provider):
        target = await make_user()
        await make_user(name="Grace")

        resp = await client.post(
            "/api/v1/admin/notifications",
            json={"type": "PROMOTION", "title": "Sale", "message": "50% off", "user_ids": [target.id], "send_email": True},
            headers=auth(admin),
        )

        assert resp.json() == {"sent": 1}
        email_provider.send.assert_awaited_once()
        assert email_provider.send.await_args.args[0] == target.email

    async def test_lifecycle_types_cannot_be_sent_manually(self, client, auth, admin):
        resp = await client.post(
            "/api/v1/admin/notifications",
            json={"type": "CERTIFICATE_ISSUED", "title": "Fake", "message": "Nope"},
            headers=auth(admin),
        )
        assert resp.status_code == 400

    async def test_admin_listing_filters_by_type(self, client, auth, admin, make_user):
        await make_user()
        await client.post(
            "/api/v1/admin/notifications", json={"title": "A", "message": "a"}, headers=auth(admin)
        )
        await client.post(
            "/api/v1/admin/notifications", json={"type": "PROMOTION", "title": "P", "message": "p"}, headers=auth(admin)
        )

        resp = await client.get("/api/v1/admin/notifications", params={"type": "PROMOTION"}, headers=auth(admin))

        assert resp.json()["total"] == 1
        assert resp.json()["notifications"][0]["title"] == "P"

    async def test_announce_course(self, client, auth, admin, make_user, make_course):
        await make_user()
        course, _ = await make_course(title="Graph Theory")

        resp = await client.post(f"/api/v1/admin/courses/{course.id}/announce", headers=auth(admin))
        assert resp.json() == {"sent": 1}

    async def test_announce_unpublished_course(self, client, auth, admin, make_course):
        course, _ = await make_course(published=False)
        resp = await client.post(f"/api/v1/admin/courses/{course.id}/announce", headers=auth(admin))
        assert resp.status_code == 400
