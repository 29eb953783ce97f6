"""Certificate number, validation hash and PDF rendering."""

import base64
import re
import time
from datetime import datetime, timezone

from learnhub.certificates.pdf import CertificateData, format_completion_date, render_certificate_pdf
from learnhub.certificates.service import certificate_verify_url, generate_certificate_number, make_validation_hash
from learnhub.config import Settings

NUMBER_RE = re.compile(r"^CERT-(\d+)-([0-9A-Z]{9})$")


class TestCertificateNumber:
    def test_format(self):
        match = NUMBER_RE.match(generate_certificate_number())
        assert match is not None

    def test_embeds_current_epoch_millis(self):
        before = int(time.time() * 1000)
        millis = int(NUMBER_RE.match(generate_certificate_number()).group(1))
        after = int(time.time() * 1000)
        assert before <= millis <= after

    def test_numbers_differ(self):
        assert len({generate_certificate_number() for _ in range(50)}) == 50


class TestValidationHash:
    def test_is_base64_of_ids_and_number(self):
        token = make_validation_hash(7, 42, "CERT-1-ABCDEFGHI")
        assert base64.b64decode(token).decode() == "7-42-CERT-1-ABCDEFGHI"

    def test_deterministic(self):
        assert make_validation_hash(1, 2, "N") == make_validation_hash(1, 2, "N")


class TestVerifyUrl:
    def test_uses_frontend_base_url(self):
        settings = Settings(frontend_base_url="https://learn.example.com/")
        assert certificate_verify_url(settings) == "https://learn.example.com/validate"


class TestPdfRendering:
    def _data(self, **overrides) -> CertificateData:
        values = {
            "student_name": "Ada Lovelace",
            "course_name": "Analytical Engines 101",
            "instructor_name": "Charles Babbage",
            "completion_date": datetime(2026, 3, 5, tzinfo=timezone.utc),
            "certificate_number": "CERT-1700000000000-ABC123XYZ",
            "validation_hash": make_validation_hash(1, 2, "CERT-1700000000000-ABC123XYZ"),
            "verify_url": "https://learn.example.com/validate",
        }
        values.update(overrides)
        return CertificateData(**values)

    def test_renders_pdf_bytes(self):
        pdf = render_certificate_pdf(self._data())
        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 1000

    def test_handles_non_ascii_names(self):
        pdf = render_certificate_pdf(self._data(student_name="José Núñez", course_name="Introducción"))
        assert pdf.startswith(b"%PDF")

    def test_completion_date_format(self):
        assert format_completion_date(datetime(2026, 3, 5)) == "March 5, 2026"
