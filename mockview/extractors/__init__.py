"""
Resume text extraction strategies.

Provides the document types, the strategy interface and the ordered
strategy registry used by the extraction pipeline.
"""

import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .errors import (
    ContentExtractionError,
    ExtractionError,
    ExtractionTimeout,
    TransientExtractionError,
)
from .progress import ProgressCallback, ProgressEvent, ProgressStage


@dataclass(frozen=True)
class Document:
    """An uploaded file, provided once per ingestion attempt."""
    content: bytes
    media_type: str
    filename: str

    @property
    def size(self) -> int:
        """Byte length of the content."""
        return len(self.content)

    @classmethod
    def from_path(cls, path: Path, media_type: Optional[str] = None) -> "Document":
        """Read a file from disk, guessing its media type from the name."""
        path = Path(path)
        if media_type is None:
            media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(content=path.read_bytes(), media_type=media_type, filename=path.name)


@dataclass
class ValidationResult:
    """Outcome of pre-flight checks on a document."""
    is_valid: bool
    file_size: int
    file_type: str
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ParseResult:
    """Result of a full ingestion attempt."""
    success: bool
    strategy: str  # strategy name, 'validation' or 'none'
    processing_time: int  # milliseconds
    text: Optional[str] = None
    error: Optional[str] = None
    pages: Optional[int] = None
    warnings: List[str] = field(default_factory=list)


# (keywords, user-facing message); first match wins
ErrorPatterns = Sequence[Tuple[Tuple[str, ...], str]]


class ParsingStrategy(ABC):
    """
    Abstract base class for text extraction strategies.

    A strategy knows whether it can currently run, how to turn a document
    into text, and how to explain its failures to a user. It never decides
    whether to fall back; the pipeline does. New variants (an OCR-backed
    strategy, for example) only need to implement this interface and be
    registered with a priority.
    """

    name: str = ""
    priority: int = 0

    ERROR_PATTERNS: ErrorPatterns = ()
    FALLBACK_MESSAGE = "PDF processing failed. Please paste your resume text manually."

    @abstractmethod
    async def is_available(self) -> bool:
        """Fast reachability probe. Must not raise."""
        pass

    @abstractmethod
    async def parse(
        self,
        document: Document,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Extract text from a validated document or raise ExtractionError."""
        pass

    def get_error_message(self, error: Optional[BaseException]) -> str:
        """Map a raw failure to one user-facing sentence."""
        message = str(error).lower() if error is not None else ""
        for keywords, friendly in self.ERROR_PATTERNS:
            if any(keyword in message for keyword in keywords):
                return friendly
        return self.FALLBACK_MESSAGE

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} priority={self.priority}>"


class StrategyRegistry:
    """Registry keeping strategies sorted by descending priority."""

    def __init__(self):
        self._strategies: List[ParsingStrategy] = []

    def register(self, strategy: ParsingStrategy) -> None:
        """Register a strategy and restore priority order."""
        self._strategies.append(strategy)
        # sort is stable: equal priorities keep registration order
        self._strategies.sort(key=lambda s: s.priority, reverse=True)

    def get_all_strategies(self) -> List[ParsingStrategy]:
        """Get all registered strategies, highest priority first."""
        return self._strategies.copy()

    def __len__(self) -> int:
        return len(self._strategies)


__all__ = [
    "ContentExtractionError",
    "Document",
    "ExtractionError",
    "ExtractionTimeout",
    "ParseResult",
    "ParsingStrategy",
    "ProgressCallback",
    "ProgressEvent",
    "ProgressStage",
    "StrategyRegistry",
    "TransientExtractionError",
    "ValidationResult",
]
