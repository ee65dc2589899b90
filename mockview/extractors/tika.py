"""
Remote Apache Tika strategy for PDF resumes.

Fallback for environments where local extraction is unavailable. The
document is split into single-page PDFs locally and each page is sent to
a Tika server, so progress stays page-granular and one bad page does not
fail the whole resume.
"""

import asyncio
import io
import logging
import time
from typing import List, Optional

import httpx

from . import Document, ParsingStrategy
from .deadline import backoff_delay, run_with_deadline
from .errors import (
    ContentExtractionError,
    ExtractionError,
    TransientExtractionError,
)
from .progress import (
    ProgressCallback,
    ProgressEvent,
    ProgressGate,
    ProgressStage,
    estimate_remaining,
    report,
)

logger = logging.getLogger(__name__)

try:
    from pypdf import PasswordType, PdfReader, PdfWriter
    PYPDF_AVAILABLE = True
except ImportError:
    PYPDF_AVAILABLE = False


def split_pages(content: bytes) -> List[bytes]:
    """Split a PDF into one standalone PDF per page."""
    try:
        with io.BytesIO(content) as stream:
            reader = PdfReader(stream)
            if reader.is_encrypted and reader.decrypt("") == PasswordType.NOT_DECRYPTED:
                raise ContentExtractionError("PDF is encrypted/password-protected")

            pages = []
            for page in reader.pages:
                writer = PdfWriter()
                writer.add_page(page)
                with io.BytesIO() as buffer:
                    writer.write(buffer)
                    pages.append(buffer.getvalue())
                del writer
            del reader
            return pages
    except ExtractionError:
        raise
    except Exception as e:
        raise ContentExtractionError(f"Remote PDF processing failed: invalid or corrupted file ({e})") from e


class RemoteTikaStrategy(ParsingStrategy):
    """PDF text extraction through a remote Apache Tika server."""

    name = "Remote Tika Worker"

    ERROR_PATTERNS = (
        (("no text content",),
         "This PDF appears to be image-based. Consider OCR, or paste your resume text manually."),
        (("encrypted", "password"),
         "This PDF is password-protected. Please remove the password or paste your resume text manually."),
        (("timeout", "timed out"),
         "Remote processing timed out due to a slow connection. Trying alternative method..."),
        (("network", "connect", "unreachable", "fetch", "remote worker"),
         "Unable to reach the PDF processing service. Trying alternative method..."),
        (("worker",),
         "Remote PDF worker failed to load. Trying alternative method..."),
        (("corrupted", "invalid", "malformed"),
         "PDF file appears to be corrupted. Please try a different file or paste text manually."),
        (("memory", "size", "too large"),
         "PDF file is too large for remote processing. Please try a smaller file or paste text manually."),
    )
    FALLBACK_MESSAGE = "Remote PDF processing failed. Please paste your resume text manually."

    def __init__(
        self,
        base_url: str = "http://localhost:9998",
        timeout: float = 30.0,
        max_retries: int = 2,
        probe_timeout: float = 5.0,
        backoff_base: float = 1.0,
        backoff_cap: float = 5.0,
        priority: int = 80,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Tika server root URL
            timeout: Overall deadline (seconds) for one parsing attempt
            max_retries: Attempts before giving up (at least 1)
            probe_timeout: Deadline (seconds) for the availability probe
            backoff_base: First backoff delay (seconds)
            backoff_cap: Maximum backoff delay (seconds)
            priority: Ordering weight; higher runs first
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.probe_timeout = probe_timeout
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self.priority = priority
        self._transport = transport

    def set_base_url(self, url: str) -> None:
        self.base_url = url.rstrip("/")

    def get_base_url(self) -> str:
        return self.base_url

    def set_timeout(self, seconds: float) -> None:
        self.timeout = seconds

    def set_max_retries(self, retries: int) -> None:
        self.max_retries = max(1, retries)

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=self._transport,
        )

    async def is_available(self) -> bool:
        """Probe the Tika endpoint with a quick HEAD request."""
        if not PYPDF_AVAILABLE:
            logger.warning("pypdf is not installed; remote worker cannot split pages")
            return False
        try:
            async with self._client(self.probe_timeout) as client:
                response = await client.head("/tika")
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning(f"Remote Tika worker not available: {e}")
            return False

    async def parse(
        self,
        document: Document,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Parse with retries; content errors are raised immediately."""
        last_error: Optional[ExtractionError] = None

        for attempt in range(1, self.max_retries + 1):
            report(on_progress, ProgressEvent(
                stage=ProgressStage.PARSING,
                progress=30,
                message=f"Loading PDF with remote worker (attempt {attempt}/{self.max_retries})...",
            ))

            gate = ProgressGate(on_progress)
            try:
                return await run_with_deadline(
                    self._attempt_parse(document, gate, attempt),
                    self.timeout,
                    f"PDF processing timed out after {self.timeout:g} seconds",
                )
            except ContentExtractionError:
                raise
            except ExtractionError as e:
                last_error = e
                logger.warning(f"Remote PDF parsing attempt {attempt} failed: {e}")
            finally:
                gate.close()

            if attempt < self.max_retries:
                await asyncio.sleep(backoff_delay(attempt, self.backoff_base, self.backoff_cap))

        raise last_error or ExtractionError("Remote PDF parsing failed after all retry attempts")

    async def _attempt_parse(
        self,
        document: Document,
        on_progress: ProgressCallback,
        attempt: int,
    ) -> str:
        """Single parsing attempt; the caller enforces the deadline."""
        try:
            async with self._client(self.timeout) as client:
                on_progress(ProgressEvent(
                    stage=ProgressStage.PARSING,
                    progress=35,
                    message=f"Connecting to remote worker (attempt {attempt})...",
                ))

                pages = await asyncio.to_thread(split_pages, document.content)
                total_pages = len(pages)

                on_progress(ProgressEvent(
                    stage=ProgressStage.PARSING,
                    progress=45,
                    message="Processing PDF document with remote worker...",
                ))
                on_progress(ProgressEvent(
                    stage=ProgressStage.EXTRACTION,
                    progress=55,
                    message=f"Extracting text from {total_pages} pages via remote worker...",
                    total_pages=total_pages,
                ))

                text_parts = []
                started = time.monotonic()
                for page_number, page_bytes in enumerate(pages, start=1):
                    page_text = await self._extract_page(client, page_bytes, page_number)
                    if page_text and page_text.strip():
                        text_parts.append(page_text.strip())

                    on_progress(ProgressEvent(
                        stage=ProgressStage.EXTRACTION,
                        progress=round(55 + (page_number / total_pages) * 35),
                        message=f"Processed page {page_number} of {total_pages} via remote worker",
                        current_page=page_number,
                        total_pages=total_pages,
                        estimated_time_remaining=estimate_remaining(
                            time.monotonic() - started, page_number, total_pages
                        ),
                    ))
                del pages

        except ExtractionError:
            raise
        except httpx.TransportError as e:
            raise TransientExtractionError(f"Network error contacting remote worker: {e}") from e
        except Exception as e:
            raise ExtractionError(f"Remote PDF processing failed: {e}") from e

        text = "\n\n".join(text_parts)
        if not text.strip():
            raise ContentExtractionError(
                "No text content found in PDF via remote worker. "
                "The document may be image-based or corrupted."
            )

        on_progress(ProgressEvent(
            stage=ProgressStage.EXTRACTION,
            progress=95,
            message="Remote text extraction completed...",
        ))
        return text

    async def _extract_page(
        self,
        client: httpx.AsyncClient,
        page_bytes: bytes,
        page_number: int,
    ) -> Optional[str]:
        """Send one page to Tika. HTTP error statuses skip the page."""
        response = await client.put(
            "/tika",
            content=page_bytes,
            headers={"Accept": "text/plain", "Content-Type": "application/pdf"},
        )
        if response.is_error:
            logger.warning(
                f"Failed to extract text from page {page_number} via remote worker: "
                f"HTTP {response.status_code}"
            )
            return None
        return response.text
