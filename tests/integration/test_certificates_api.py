"""Integration: certificate issuance, download counting and validation."""

from __future__ import annotations

import re
from unittest.mock import AsyncMock, patch

from sqlalchemy import select

from learnhub.certificates.service import make_validation_hash
from learnhub.db.enums import EnrollmentStatus
from learnhub.db.models import Certificate, Enrollment, ProgressRecord
from learnhub.gamification.seed import seed_badges


async def _learner_with_progress(db, make_user, make_course, completed: int, total: int = 10, **course_kwargs):
    user = await make_user()
    course, lessons = await make_course(total, **course_kwargs)
    db.add(Enrollment(user_id=user.id, course_id=course.id, status=EnrollmentStatus.ACTIVE.value))
    db.add_all(
        [ProgressRecord(user_id=user.id, lesson_id=lesson.id, is_completed=True) for lesson in lessons[:completed]]
    )
    await db.commit()
    return user, course


async def _generate(client, auth, user, course):
    return await client.post("/api/v1/certificates/generate", json={"course_id": course.id}, headers=auth(user))


class TestGenerate:
    async def test_issues_pdf_at_threshold(self, client, auth, db_session, make_user, make_course):
        user, course = await _learner_with_progress(db_session, make_user, make_course, completed=8)

        resp = await _generate(client, auth, user, course)

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")
        number = resp.headers["x-certificate-number"]
        assert re.fullmatch(r"CERT-\d+-[0-9A-Z]{9}", number)
        assert resp.headers["content-disposition"] == f'attachment; filename="certificate-{number}.pdf"'
        assert resp.headers["x-download-count"] == "1"

    async def test_repeat_download_reuses_certificate(self, client, auth, db_session, make_user, make_course, settle):
        user, course = await _learner_with_progress(db_session, make_user, make_course, completed=9)

        first = await _generate(client, auth, user, course)
        second = await _generate(client, auth, user, course)

        assert second.status_code == 200
        assert second.headers["x-certificate-number"] == first.headers["x-certificate-number"]
        assert second.headers["x-download-count"] == "2"

        await settle()
        rows = (await db_session.execute(select(Certificate))).scalars().all()
        assert len(rows) == 1
        assert rows[0].validation_hash == make_validation_hash(user.id, course.id, rows[0].certificate_number)

    async def test_existing_certificate_survives_lower_completion(
        self, client, auth, db_session, make_user, make_course, settle
    ):
        user, course = await _learner_with_progress(db_session, make_user, make_course, completed=8)
        await _generate(client, auth, user, course)

        await settle()
        for record in (await db_session.execute(select(ProgressRecord))).scalars().all():
            record.is_completed = False
        await db_session.commit()

        resp = await _generate(client, auth, user, course)
        assert resp.status_code == 200
        assert resp.headers["x-download-count"] == "2"

    async def test_below_threshold(self, client, auth, db_session, make_user, make_course):
        user, course = await _learner_with_progress(db_session, make_user, make_course, completed=7)

        resp = await _generate(client, auth, user, course)

        assert resp.status_code == 400
        body = resp.json()
        assert body["current_completion"] == 70
        assert body["required_completion"] == 80

    async def test_not_enrolled(self, client, auth, make_user, make_course):
        user = await make_user()
        course, _ = await make_course()

        resp = await _generate(client, auth, user, course)

        assert resp.status_code == 404
        assert resp.json()["current_completion"] == 0

    async def test_unknown_course(self, client, auth, make_user):
        user = await make_user()
        resp = await client.post("/api/v1/certificates/generate", json={"course_id": 424242}, headers=auth(user))
        assert resp.status_code == 404

    async def test_requires_authentication(self, client, make_course):
        course, _ = await make_course()
        resp = await client.post("/api/v1/certificates/generate", json={"course_id": course.id})
        assert resp.status_code == 401

    async def test_issue_notifies_and_emails(self, client, auth, db_session, make_user, make_course, email_provider):
        user, course = await _learner_with_progress(
            db_session, make_user, make_course, completed=10, title="Data Pipelines"
        )

        await _generate(client, auth, user, course)
        await _generate(client, auth, user, course)
        resp = await client.get("/api/v1/notifications", headers=auth(user))

        types = sorted(n["type"] for n in resp.json()["notifications"])
        assert types == ["CERTIFICATE_ISSUED", "COURSE_COMPLETION"]
        subjects = [call.args[1] for call in email_provider.send.await_args_list]
        assert "Your certificate for Data Pipelines is ready" in subjects
        assert len(subjects) == 2

    async def test_certificate_badge_after_issue(self, client, auth, db_session, make_user, make_course):
        await seed_badges(db_session)
        user, course = await _learner_with_progress(db_session, make_user, make_course, completed=8)

        await _generate(client, auth, user, course)

        resp = await client.get("/api/v1/users/me/badges", headers=auth(user))
        names = [e["badge"]["name"] for e in resp.json()["earned"]]
        assert "Certified" in names

    async def test_failing_fan_out_still_returns_pdf(self, client, auth, db_session, make_user, make_course, settle):
        user, course = await _learner_with_progress(db_session, make_user, make_course, completed=10)

        with patch(
            "learnhub.events.handlers.notify_course_completion",
            AsyncMock(side_effect=RuntimeError("notification store down")),
        ):
            resp = await _generate(client, auth, user, course)

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")
        await settle()
        rows = (await db_session.execute(select(Certificate))).scalars().all()
        assert [r.certificate_number for r in rows] == [resp.headers["x-certificate-number"]]


class TestValidate:
    async def test_valid_certificate(self, client, auth, db_session, make_user, make_course, settle):
        user, course = await _learner_with_progress(
            db_session, make_user, make_course, completed=8, title="Rust for Pythonistas"
        )
        await _generate(client, auth, user, course)
        await settle()
        cert = (await db_session.execute(select(Certificate))).scalar_one()

        resp = await client.get(
            "/api/v1/certificates/validate",
            params={"number": cert.certificate_number, "hash": cert.validation_hash},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["valid"] is True
        assert body["student_name"] == user.name
        assert body["course_title"] == "Rust for Pythonistas"

    async def test_wrong_hash(self, client, auth, db_session, make_user, make_course):
        user, course = await _learner_with_progress(db_session, make_user, make_course, completed=8)
        generated = await _generate(client, auth, user, course)

        resp = await client.get(
            "/api/v1/certificates/validate",
            params={"number": generated.headers["x-certificate-number"], "hash": "bm9wZQ=="},
        )
        assert resp.status_code == 404

    async def test_list_my_certificates(self, client, auth, db_session, make_user, make_course):
        user, course = await _learner_with_progress(db_session, make_user, make_course, completed=8)
        await _generate(client, auth, user, course)
        await _generate(client, auth, user, course)

        resp = await client.get("/api/v1/users/me/certificates", headers=auth(user))

        (entry,) = resp.json()["certificates"]
        assert entry["course_id"] == course.id
        assert entry["download_count"] == 2
