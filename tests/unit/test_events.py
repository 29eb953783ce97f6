"""Domain event payloads and stream encoding."""

import pytest
from pydantic import ValidationError

from learnhub.events.schemas import CertificateIssued, EnrollmentCreated, parse_event


class TestParseEvent:
    def test_round_trip_through_stream_fields(self):
        event = CertificateIssued(user_id=1, course_id=2, certificate_id=3, certificate_number="CERT-1-AAAAAAAAA")
        parsed = parse_event(event.name, event.model_dump_json())
        assert isinstance(parsed, CertificateIssued)
        assert parsed == event

    def test_event_names(self):
        assert CertificateIssued.name == "certificate_issued"
        assert EnrollmentCreated.name == "enrollment_created"

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            parse_event("course_deleted", "{}")

    def test_invalid_payload(self):
        with pytest.raises(ValidationError):
            parse_event("enrollment_created", '{"user_id": 1}')

    def test_each_event_gets_an_id(self):
        a = EnrollmentCreated(user_id=1, course_id=1, enrollment_id=1)
        b = EnrollmentCreated(user_id=1, course_id=1, enrollment_id=1)
        assert a.event_id != b.event_id
