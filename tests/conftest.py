"""
Shared fixtures: small generated PDFs and a configurable fake strategy.
"""

import io
from typing import List, Optional, Sequence

import pytest
from pypdf import PdfReader, PdfWriter

from mockview.extractors import Document, ParsingStrategy, ProgressEvent
from mockview.extractors.progress import report


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_text_pdf(pages: Sequence[str]) -> bytes:
    """Build a minimal PDF with one line of Helvetica text per page."""
    page_ids = [4 + 2 * i for i in range(len(pages))]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for pid, text in zip(page_ids, pages):
        stream = f"BT /F1 12 Tf 72 720 Td ({_escape(text)}) Tj ET".encode()
        objects.append(
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {pid + 1} 0 R >>".encode()
        )
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return bytes(out)


def build_blank_pdf(page_count: int = 1) -> bytes:
    """Build an image-like PDF: pages with no text content at all."""
    writer = PdfWriter()
    for _ in range(page_count):
        writer.add_blank_page(width=612, height=792)
    with io.BytesIO() as buffer:
        writer.write(buffer)
        return buffer.getvalue()


def build_encrypted_pdf(pages: Sequence[str], user_password: str = "", owner_password: str = "owner") -> bytes:
    """Encrypt a text PDF; an empty user password leaves it readable without a password."""
    writer = PdfWriter(clone_from=PdfReader(io.BytesIO(build_text_pdf(pages))))
    writer.encrypt(user_password=user_password, owner_password=owner_password)
    with io.BytesIO() as buffer:
        writer.write(buffer)
        return buffer.getvalue()


def pdf_document(content: bytes, filename: str = "resume.pdf") -> Document:
    return Document(content=content, media_type="application/pdf", filename=filename)


class FakeStrategy(ParsingStrategy):
    """Strategy with scripted availability, events and outcome."""

    ERROR_PATTERNS = (
        (("no text content",), "This PDF appears to be image-based. Consider OCR or manual entry."),
        (("timeout",), "Processing timed out. Trying alternative method..."),
    )
    FALLBACK_MESSAGE = "Fake strategy failed."

    def __init__(
        self,
        name: str,
        priority: int,
        available: bool = True,
        text: Optional[str] = "Jane Doe\n\nSoftware Engineer",
        error: Optional[Exception] = None,
        events: Sequence[ProgressEvent] = (),
    ):
        self.name = name
        self.priority = priority
        self.available = available
        self.text = text
        self.error = error
        self.events = list(events)
        self.probe_calls = 0
        self.parse_calls = 0

    async def is_available(self) -> bool:
        self.probe_calls += 1
        return self.available

    async def parse(self, document, on_progress=None) -> str:
        self.parse_calls += 1
        for event in self.events:
            report(on_progress, event)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def two_page_pdf() -> bytes:
    return build_text_pdf([
        "Jane Doe - Senior Python Engineer",
        "Experience: built resume parsing pipelines",
    ])


@pytest.fixture
def blank_pdf() -> bytes:
    return build_blank_pdf(2)


@pytest.fixture
def events() -> List[ProgressEvent]:
    """Collects progress events; pass ``events.append`` as the callback."""
    return []
