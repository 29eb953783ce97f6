"""Certificate API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.auth.dependencies import get_current_user
from learnhub.certificates.schemas import (
    CertificateListResponse,
    CertificateResponse,
    CertificateValidationResponse,
    GenerateCertificateRequest,
)
from learnhub.certificates.service import generate_certificate, list_user_certificates, validate_certificate
from learnhub.database import get_session
from learnhub.db.models import User
from learnhub.dependencies import get_event_bus
from learnhub.events.bus import EventBus

router = APIRouter(prefix="/api/v1", tags=["Certificates"])


@router.post(
    "/certificates/generate",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def generate(
    body: GenerateCertificateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    events: EventBus = Depends(get_event_bus),
) -> Response:
    """Issue the certificate on first eligible request and return it as a PDF."""
    issued = await generate_certificate(db, events, user.id, body.course_id)
    return Response(
        content=issued.pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{issued.filename}"',
            "X-Certificate-Number": issued.certificate.certificate_number,
            "X-Download-Count": str(issued.certificate.download_count),
        },
    )


@router.get("/certificates/validate", response_model=CertificateValidationResponse)
async def validate(
    number: str = Query(..., min_length=1),
    hash: str = Query(..., min_length=1),  # noqa: A002
    db: AsyncSession = Depends(get_session),
):
    """Public check that a certificate number and validation hash belong together."""
    return await validate_certificate(db, number, hash)


@router.get("/users/me/certificates", response_model=CertificateListResponse)
async def my_certificates(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rows = await list_user_certificates(db, user.id)
    return CertificateListResponse(certificates=[CertificateResponse(**row) for row in rows])
