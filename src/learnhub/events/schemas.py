"""Domain event payloads."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import ClassVar

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DomainEvent(BaseModel):
    name: ClassVar[str] = "domain_event"

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    occurred_at: datetime = Field(default_factory=_utcnow)


class CertificateIssued(DomainEvent):
    name: ClassVar[str] = "certificate_issued"

    user_id: int
    course_id: int
    certificate_id: int
    certificate_number: str


class EnrollmentCreated(DomainEvent):
    name: ClassVar[str] = "enrollment_created"

    user_id: int
    course_id: int
    enrollment_id: int


EVENT_TYPES: dict[str, type[DomainEvent]] = {
    cls.name: cls for cls in (CertificateIssued, EnrollmentCreated)
}


def parse_event(name: str, data: str) -> DomainEvent:
    """Rebuild an event from its stream fields. Raises KeyError for unknown names."""
    return EVENT_TYPES[name].model_validate_json(data)
