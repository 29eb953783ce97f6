"""Certificate PDF rendering with Pillow.

The page is drawn as an A4 landscape raster at 150 DPI and saved as a
single-page PDF. Layout positions are given in millimetres and font sizes
in points, then scaled to pixels.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

from PIL import Image, ImageDraw, ImageFont

DPI = 150
PAGE_WIDTH_MM = 297
PAGE_HEIGHT_MM = 210

BACKGROUND = (248, 250, 252)
BORDER_OUTER = (59, 130, 246)
BORDER_INNER = (147, 197, 253)
TITLE = (30, 58, 138)
MUTED = (75, 85, 99)
STRONG = (17, 24, 39)
ACCENT = (59, 130, 246)
DETAIL = (107, 114, 128)
FAINT = (156, 163, 175)

_FONT_FILES = {
    False: ("DejaVuSans.ttf", "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    True: ("DejaVuSans-Bold.ttf", "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
}


@dataclass(frozen=True)
class CertificateData:
    student_name: str
    course_name: str
    instructor_name: str
    completion_date: datetime
    certificate_number: str
    validation_hash: str
    verify_url: str
    platform_name: str = "LearnHub"


def mm(value: float) -> int:
    return round(value * DPI / 25.4)


def pt(value: float) -> int:
    return round(value * DPI / 72)


@lru_cache(maxsize=32)
def _font(size_pt: int, bold: bool = False) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """DejaVu when installed, otherwise Pillow's bundled scalable default."""
    for candidate in _FONT_FILES[bold]:
        try:
            return ImageFont.truetype(candidate, pt(size_pt))
        except OSError:
            continue
    return ImageFont.load_default(size=pt(size_pt))


def format_completion_date(value: datetime) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def render_certificate_pdf(data: CertificateData) -> bytes:
    """Render the certificate and return the PDF bytes."""
    width, height = mm(PAGE_WIDTH_MM), mm(PAGE_HEIGHT_MM)
    img = Image.new("RGB", (width, height), color=BACKGROUND)
    draw = ImageDraw.Draw(img)

    draw.rectangle([mm(10), mm(10), width - mm(10), height - mm(10)], outline=BORDER_OUTER, width=mm(1))
    draw.rectangle([mm(15), mm(15), width - mm(15), height - mm(15)], outline=BORDER_INNER, width=mm(0.35))

    def centered(text: str, y_mm: float, size: int, fill: tuple[int, int, int], bold: bool = False) -> None:
        font = _font(size, bold)
        text_width = draw.textlength(text, font=font)
        draw.text(((width - text_width) / 2, mm(y_mm)), text, font=font, fill=fill)

    def left(text: str, x_mm: float, y_mm: float, size: int, fill: tuple[int, int, int], bold: bool = False) -> None:
        draw.text((mm(x_mm), mm(y_mm)), text, font=_font(size, bold), fill=fill)

    centered("CERTIFICATE OF COMPLETION", 38, 32, TITLE, bold=True)
    centered("This certifies that", 60, 16, MUTED)
    centered(data.student_name, 76, 28, STRONG, bold=True)
    centered("has successfully completed the course", 98, 16, MUTED)
    centered(data.course_name, 115, 20, ACCENT, bold=True)
    centered(f"Completed on {format_completion_date(data.completion_date)}", 142, 12, DETAIL)

    left(f"Instructor: {data.instructor_name}", 50, 165, 14, STRONG, bold=True)
    left(f"Certificate No.: {data.certificate_number}", 50, 176, 10, FAINT)
    left(f"Validation: {data.validation_hash[:20]}...", 50, 182, 10, FAINT)
    left(f"{data.platform_name} - Learning Management System", 50, 188, 10, FAINT)

    left("Verify at:", PAGE_WIDTH_MM - 80, 176, 10, FAINT, bold=True)
    left(data.verify_url, PAGE_WIDTH_MM - 80, 182, 10, FAINT, bold=True)

    buf = io.BytesIO()
    img.save(buf, format="PDF", resolution=float(DPI))
    return buf.getvalue()
