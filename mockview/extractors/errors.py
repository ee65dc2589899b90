"""
Exceptions raised by parsing strategies.

Strategies translate third-party failures (pypdf, httpx) into these
so the pipeline can decide between retrying and falling back.
"""


class ExtractionError(Exception):
    """Base class for extraction failures."""
    pass


class TransientExtractionError(ExtractionError):
    """Failure that may succeed on retry (network, worker load)."""
    pass


class ExtractionTimeout(TransientExtractionError):
    """Raised when an extraction attempt exceeds its deadline."""
    pass


class ContentExtractionError(ExtractionError):
    """Failure caused by the document itself (corrupted, encrypted, no text)."""
    pass


NO_TEXT_CONTENT = (
    "No text content found in PDF. The document may be image-based or corrupted."
)
