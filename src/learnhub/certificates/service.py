"""Certificate issuance.

A learner with an ACTIVE enrollment gets one certificate per course once
completion reaches the threshold. The first successful request issues the
row and publishes ``CertificateIssued``; every request (first included)
counts as a download and re-renders the PDF from the stored row.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import secrets
import string
import time
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.certificates.pdf import CertificateData, render_certificate_pdf
from learnhub.config import Settings, get_settings
from learnhub.courses.completion import CERTIFICATE_THRESHOLD, get_completion_percentage
from learnhub.courses.enrollment import get_active_enrollment
from learnhub.db.models import Certificate, Course, User
from learnhub.errors import IneligibleError, InternalError, NotFoundError
from learnhub.events.bus import EventBus
from learnhub.events.schemas import CertificateIssued

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


@dataclass
class IssuedCertificate:
    certificate: Certificate
    pdf: bytes
    newly_issued: bool

    @property
    def filename(self) -> str:
        return f"certificate-{self.certificate.certificate_number}.pdf"


def generate_certificate_number() -> str:
    """``CERT-<epoch millis>-<9 random base36 chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"CERT-{int(time.time() * 1000)}-{suffix}"


def make_validation_hash(user_id: int, course_id: int, certificate_number: str) -> str:
    """Lookup token printed on the certificate. Not a signature."""
    raw = f"{user_id}-{course_id}-{certificate_number}".encode()
    return base64.b64encode(raw).decode("ascii")


def certificate_verify_url(settings: Settings | None = None) -> str:
    """Public validation page printed on the certificate."""
    settings = settings or get_settings()
    return settings.frontend_base_url.rstrip("/") + "/validate"


async def get_certificate(db: AsyncSession, user_id: int, course_id: int) -> Certificate | None:
    result = await db.execute(
        select(Certificate)
        .where(Certificate.user_id == user_id, Certificate.course_id == course_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _insert_certificate(db: AsyncSession, user_id: int, course_id: int) -> tuple[Certificate, bool]:
    """Insert a new row; a concurrent winner's row is returned instead."""
    number = generate_certificate_number()
    certificate = Certificate(
        user_id=user_id,
        course_id=course_id,
        certificate_number=number,
        validation_hash=make_validation_hash(user_id, course_id, number),
        download_count=0,
    )
    try:
        async with db.begin_nested():
            db.add(certificate)
    except IntegrityError:
        existing = await get_certificate(db, user_id, course_id)
        if existing is None:
            raise InternalError("Certificate insert failed") from None
        return existing, False
    return certificate, True


async def _render(db: AsyncSession, certificate: Certificate) -> bytes:
    student = await db.get(User, certificate.user_id)
    course = await db.get(Course, certificate.course_id)
    if student is None or course is None:
        raise NotFoundError("Certificate owner or course no longer exists")
    instructor = await db.get(User, course.instructor_id) if course.instructor_id else None

    data = CertificateData(
        student_name=student.name or student.email,
        course_name=course.title,
        instructor_name=instructor.name if instructor else "LearnHub Instructor",
        completion_date=certificate.issued_at,
        certificate_number=certificate.certificate_number,
        validation_hash=certificate.validation_hash,
        verify_url=certificate_verify_url(),
    )
    return await asyncio.to_thread(render_certificate_pdf, data)


async def generate_certificate(
    db: AsyncSession,
    events: EventBus,
    user_id: int,
    course_id: int,
) -> IssuedCertificate:
    """Issue (if needed) and render the user's certificate for a course. Commits.

    Raises NotFoundError without an ACTIVE enrollment and IneligibleError
    below the completion threshold; both carry ``current_completion``.
    An existing certificate is never re-checked against the threshold.
    The PDF is rendered before the download is counted, so a failed render
    neither counts a download nor issues the certificate.
    """
    if await get_active_enrollment(db, user_id, course_id) is None:
        completion = await get_completion_percentage(db, user_id, course_id)
        raise NotFoundError("Not enrolled in this course", current_completion=round(completion))

    certificate = await get_certificate(db, user_id, course_id)
    newly_issued = False
    if certificate is None:
        completion = await get_completion_percentage(db, user_id, course_id)
        if completion < CERTIFICATE_THRESHOLD:
            raise IneligibleError(
                f"Complete at least {CERTIFICATE_THRESHOLD:.0f}% of the course to earn a certificate",
                current_completion=round(completion),
                required_completion=round(CERTIFICATE_THRESHOLD),
            )
        certificate, newly_issued = await _insert_certificate(db, user_id, course_id)

    pdf = await _render(db, certificate)
    await db.execute(
        update(Certificate)
        .where(Certificate.id == certificate.id)
        .values(download_count=Certificate.download_count + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(certificate)

    if newly_issued:
        logger.info("Issued certificate %s to user %s for course %s",
                    certificate.certificate_number, user_id, course_id)
        await events.publish(
            CertificateIssued(
                user_id=user_id,
                course_id=course_id,
                certificate_id=certificate.id,
                certificate_number=certificate.certificate_number,
            )
        )

    return IssuedCertificate(certificate=certificate, pdf=pdf, newly_issued=newly_issued)


async def validate_certificate(db: AsyncSession, certificate_number: str, validation_hash: str) -> dict:
    """Public lookup. Raises NotFoundError unless number and hash both match."""
    row = (
        await db.execute(
            select(Certificate, User.name, Course.title)
            .join(User, User.id == Certificate.user_id)
            .join(Course, Course.id == Certificate.course_id)
            .where(
                Certificate.certificate_number == certificate_number,
                Certificate.validation_hash == validation_hash,
            )
        )
    ).first()
    if row is None:
        raise NotFoundError("Certificate not found or invalid")
    certificate, student_name, course_title = row
    return {
        "valid": True,
        "certificate_number": certificate.certificate_number,
        "student_name": student_name,
        "course_title": course_title,
        "issued_at": certificate.issued_at,
    }


async def list_user_certificates(db: AsyncSession, user_id: int) -> list[dict]:
    result = await db.execute(
        select(Certificate, Course.title)
        .join(Course, Course.id == Certificate.course_id)
        .where(Certificate.user_id == user_id)
        .order_by(Certificate.issued_at.desc(), Certificate.id.desc())
    )
    return [
        {
            "id": certificate.id,
            "course_id": certificate.course_id,
            "course_title": title,
            "certificate_number": certificate.certificate_number,
            "validation_hash": certificate.validation_hash,
            "issued_at": certificate.issued_at,
            "download_count": certificate.download_count,
        }
        for certificate, title in result.all()
    ]
