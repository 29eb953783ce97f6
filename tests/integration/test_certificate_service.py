"""Integration: certificate issuance races and render failures at the service level."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from learnhub.certificates import service
from learnhub.certificates.service import generate_certificate, get_certificate, make_validation_hash
from learnhub.db.enums import EnrollmentStatus
from learnhub.db.models import Certificate, Enrollment, ProgressRecord
from learnhub.events.bus import EventBus

WINNER = "CERT-1700000000000-WINNER000"


def _bus() -> MagicMock:
    bus = MagicMock(spec=EventBus)
    bus.publish = AsyncMock()
    return bus


async def _eligible_learner(db, make_user, make_course):
    user = await make_user()
    course, lessons = await make_course(10)
    db.add(Enrollment(user_id=user.id, course_id=course.id, status=EnrollmentStatus.ACTIVE.value))
    db.add_all([ProgressRecord(user_id=user.id, lesson_id=lesson.id, is_completed=True) for lesson in lessons[:8]])
    await db.commit()
    return user, course


class TestConcurrentIssue:
    async def test_losing_insert_reuses_the_winning_row(self, db_session, make_user, make_course, monkeypatch):
        user, course = await _eligible_learner(db_session, make_user, make_course)
        db_session.add(Certificate(
            user_id=user.id,
            course_id=course.id,
            certificate_number=WINNER,
            validation_hash=make_validation_hash(user.id, course.id, WINNER),
            download_count=1,
        ))
        await db_session.commit()

        # This request looked before the other one committed its certificate.
        real_get = service.get_certificate
        reads: list[int] = []

        async def read_before_winner(db, user_id, course_id):
            reads.append(user_id)
            if len(reads) == 1:
                return None
            return await real_get(db, user_id, course_id)

        monkeypatch.setattr(service, "get_certificate", read_before_winner)
        bus = _bus()

        issued = await generate_certificate(db_session, bus, user.id, course.id)

        assert issued.newly_issued is False
        assert issued.certificate.certificate_number == WINNER
        assert issued.certificate.download_count == 2
        assert issued.pdf.startswith(b"%PDF")
        bus.publish.assert_not_awaited()

        rows = (await db_session.execute(select(Certificate))).scalars().all()
        assert len(rows) == 1


class TestRenderFailure:
    async def test_failed_render_counts_no_download(self, db_session, make_user, make_course, monkeypatch):
        user, course = await _eligible_learner(db_session, make_user, make_course)
        bus = _bus()
        await generate_certificate(db_session, bus, user.id, course.id)

        monkeypatch.setattr(service, "render_certificate_pdf", MagicMock(side_effect=OSError("font missing")))
        with pytest.raises(OSError):
            await generate_certificate(db_session, bus, user.id, course.id)
        await db_session.rollback()

        certificate = await get_certificate(db_session, user.id, course.id)
        assert certificate.download_count == 1
        assert bus.publish.await_count == 1

    async def test_failed_first_render_issues_nothing(self, db_session, make_user, make_course, monkeypatch):
        user, course = await _eligible_learner(db_session, make_user, make_course)
        monkeypatch.setattr(service, "render_certificate_pdf", MagicMock(side_effect=OSError("font missing")))
        bus = _bus()

        with pytest.raises(OSError):
            await generate_certificate(db_session, bus, user.id, course.id)
        await db_session.rollback()

        assert await get_certificate(db_session, user.id, course.id) is None
        bus.publish.assert_not_awaited()
