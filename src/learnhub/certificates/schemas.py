"""Pydantic models for certificate endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class GenerateCertificateRequest(BaseModel):
    course_id: int


class CertificateResponse(BaseModel):
    id: int
    course_id: int
    course_title: str
    certificate_number: str
    validation_hash: str
    issued_at: datetime
    download_count: int


class CertificateListResponse(BaseModel):
    certificates: list[CertificateResponse]


class CertificateValidationResponse(BaseModel):
    valid: bool
    certificate_number: str
    student_name: str | None = None
    course_title: str
    issued_at: datetime
