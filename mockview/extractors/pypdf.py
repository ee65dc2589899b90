"""
Local pypdf strategy for PDF resumes.

Runs entirely in-process, so it is preferred over any remote worker.
"""

import asyncio
import io
import logging
import time
from pathlib import Path
from typing import Optional

from . import Document, ParsingStrategy
from .errors import ContentExtractionError, ExtractionError, NO_TEXT_CONTENT
from .progress import ProgressCallback, ProgressEvent, ProgressStage, estimate_remaining, report

logger = logging.getLogger(__name__)

try:
    from pypdf import PasswordType, PdfReader
    from pypdf.errors import PdfReadError
    PYPDF_AVAILABLE = True
except ImportError:
    PYPDF_AVAILABLE = False


class LocalPDFStrategy(ParsingStrategy):
    """PDF text extraction using the locally installed pypdf library."""

    name = "Local pypdf Worker"

    ERROR_PATTERNS = (
        (("no text content",),
         "This PDF appears to be image-based or scanned. Consider OCR, or paste your resume text manually."),
        (("encrypted", "password"),
         "This PDF is password-protected. Please remove the password or paste your resume text manually."),
        (("timeout", "timed out"),
         "PDF processing timed out. Trying alternative method..."),
        (("network", "connect", "unreachable"),
         "PDF processing service is unreachable. Trying alternative method..."),
        (("worker",),
         "PDF processing worker failed to load. Trying alternative method..."),
        (("corrupted", "invalid", "malformed"),
         "PDF file appears to be corrupted or invalid. Please try a different file or paste text manually."),
        (("memory", "size"),
         "PDF file is too large or complex for this method. Please try a smaller file or paste text manually."),
    )
    FALLBACK_MESSAGE = "Failed to process PDF with local method. Trying alternative approach..."

    def __init__(self, worker_path: Optional[Path] = None, priority: int = 100):
        """
        Args:
            worker_path: Optional locally bundled asset that must exist for
                this strategy to report itself available.
            priority: Ordering weight; higher runs first.
        """
        self.worker_path = Path(worker_path) if worker_path else None
        self.priority = priority

    def set_worker_path(self, path: Optional[Path]) -> None:
        """Set the bundled worker asset location."""
        self.worker_path = Path(path) if path else None

    def get_worker_path(self) -> Optional[Path]:
        """Get the bundled worker asset location."""
        return self.worker_path

    async def is_available(self) -> bool:
        """Check that pypdf is importable and the worker asset is present."""
        if not PYPDF_AVAILABLE:
            logger.warning("pypdf is not installed; local worker unavailable")
            return False
        if self.worker_path is None:
            return True
        try:
            return await asyncio.to_thread(self.worker_path.is_file)
        except OSError as e:
            logger.warning(f"Local worker asset not available: {e}")
            return False

    async def parse(
        self,
        document: Document,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Extract text from all pages with pypdf."""
        if not PYPDF_AVAILABLE:
            raise ExtractionError("Local PDF worker failed to load: pypdf not installed")

        report(on_progress, ProgressEvent(
            stage=ProgressStage.PARSING,
            progress=30,
            message="Loading PDF with local worker...",
        ))

        try:
            with io.BytesIO(document.content) as stream:
                reader = await asyncio.to_thread(PdfReader, stream)

                # Owner-only encryption opens with the empty user password
                if reader.is_encrypted and reader.decrypt("") == PasswordType.NOT_DECRYPTED:
                    del reader
                    raise ContentExtractionError("PDF is encrypted/password-protected")

                report(on_progress, ProgressEvent(
                    stage=ProgressStage.PARSING,
                    progress=40,
                    message="Processing PDF document...",
                ))

                total_pages = len(reader.pages)
                report(on_progress, ProgressEvent(
                    stage=ProgressStage.EXTRACTION,
                    progress=50,
                    message=f"Extracting text from {total_pages} pages...",
                    total_pages=total_pages,
                ))

                text_parts = []
                started = time.monotonic()
                for page_number in range(1, total_pages + 1):
                    try:
                        page = reader.pages[page_number - 1]
                        page_text = await asyncio.to_thread(page.extract_text)
                        if page_text and page_text.strip():
                            text_parts.append(page_text.strip())
                        del page, page_text
                    except Exception as e:
                        # One bad page should not sink the whole resume
                        logger.warning(f"Failed to extract text from page {page_number}: {e}")

                    report(on_progress, ProgressEvent(
                        stage=ProgressStage.EXTRACTION,
                        progress=round(50 + (page_number / total_pages) * 40),
                        message=f"Processed page {page_number} of {total_pages}",
                        current_page=page_number,
                        total_pages=total_pages,
                        estimated_time_remaining=estimate_remaining(
                            time.monotonic() - started, page_number, total_pages
                        ),
                    ))

                del reader

        except ExtractionError:
            raise
        except PdfReadError as e:
            raise ContentExtractionError(f"Failed to process PDF: invalid or corrupted file ({e})") from e
        except MemoryError as e:
            raise ExtractionError("Failed to process PDF: out of memory") from e
        except Exception as e:
            raise ExtractionError(f"Failed to process PDF: {e}") from e

        text = "\n\n".join(text_parts)
        if not text.strip():
            raise ContentExtractionError(NO_TEXT_CONTENT)

        report(on_progress, ProgressEvent(
            stage=ProgressStage.EXTRACTION,
            progress=95,
            message="Finalizing text extraction...",
        ))
        return text
