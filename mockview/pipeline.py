"""
Extraction pipeline for resume ingestion.

Validates the upload, then walks the registered strategies in priority
order with fallback until one of them produces text.
"""

import logging
import time
from typing import List, Optional

from .config import MockviewSettings
from .extractors import (
    ContentExtractionError,
    Document,
    ParseResult,
    ParsingStrategy,
    ProgressCallback,
    ProgressEvent,
    ProgressStage,
    StrategyRegistry,
    ValidationResult,
)
from .extractors.errors import NO_TEXT_CONTENT
from .extractors.progress import MonotonicProgress
from .extractors.pypdf import LocalPDFStrategy
from .extractors.tika import RemoteTikaStrategy
from .validation import FileValidator

logger = logging.getLogger(__name__)

NO_STRATEGIES_MESSAGE = (
    "No PDF parsing strategies are available. "
    "Please try pasting your resume text manually."
)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class ExtractionPipeline:
    """Pipeline for extracting resume text with strategy fallback."""

    def __init__(self, validator: Optional[FileValidator] = None):
        """Initialize an empty pipeline; register strategies before parsing."""
        self.validator = validator or FileValidator()
        self._registry = StrategyRegistry()

    @classmethod
    def from_config(cls, config: MockviewSettings) -> "ExtractionPipeline":
        """Build a pipeline with the strategies enabled in configuration."""
        validator = FileValidator(
            max_file_size=config.extraction.max_file_size,
            accepted_media_types=config.extraction.accepted_media_types,
            accepted_extension=config.extraction.accepted_extension,
        )
        pipeline = cls(validator)

        # Local (offline-capable) → Remote Tika (network dependent)
        if config.local_worker.enabled:
            pipeline.register_strategy(LocalPDFStrategy(
                worker_path=config.local_worker.worker_path,
                priority=config.local_worker.priority,
            ))

        if config.remote_worker.enabled:
            remote = config.remote_worker
            pipeline.register_strategy(RemoteTikaStrategy(
                base_url=remote.base_url,
                timeout=remote.timeout,
                max_retries=remote.max_retries,
                probe_timeout=remote.probe_timeout,
                backoff_base=remote.backoff_base,
                backoff_cap=remote.backoff_cap,
                priority=remote.priority,
            ))

        return pipeline

    def register_strategy(self, strategy: ParsingStrategy) -> None:
        """Register a parsing strategy; the registry stays priority-ordered."""
        self._registry.register(strategy)
        logger.debug(f"Registered strategy {strategy.name} (priority {strategy.priority})")

    def get_parsing_strategies(self) -> List[ParsingStrategy]:
        """Get registered strategies, highest priority first."""
        return self._registry.get_all_strategies()

    def set_max_file_size(self, size_in_bytes: int) -> None:
        """Set the upload size ceiling in bytes."""
        self.validator.max_file_size = size_in_bytes

    def get_max_file_size(self) -> int:
        """Get the upload size ceiling in bytes."""
        return self.validator.max_file_size

    def validate_file(self, document: Document) -> ValidationResult:
        """Run pre-flight checks on a document."""
        return self.validator.validate(document)

    async def has_available_strategies(self) -> bool:
        """Check if any registered strategy can currently run."""
        for strategy in self.get_parsing_strategies():
            if await self._is_available(strategy):
                return True
        return False

    async def _is_available(self, strategy: ParsingStrategy) -> bool:
        try:
            return bool(await strategy.is_available())
        except Exception as e:
            logger.warning(f"Availability probe for {strategy.name} raised: {e}")
            return False

    async def parse_file(
        self,
        document: Document,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ParseResult:
        """
        Parse a resume using available strategies with fallback.

        Never raises for strategy failures: the result carries either the
        extracted text or one user-facing error message.
        """
        start = time.perf_counter()
        progress = MonotonicProgress(on_progress)

        validation = self.validate_file(document)
        if not validation.is_valid:
            logger.info(f"Rejected {document.filename}: {', '.join(validation.errors)}")
            return ParseResult(
                success=False,
                strategy="validation",
                error=", ".join(validation.errors),
                processing_time=_elapsed_ms(start),
                warnings=validation.warnings,
            )

        for warning in validation.warnings:
            logger.info(f"{document.filename}: {warning}")

        progress(ProgressEvent(
            stage=ProgressStage.VALIDATION,
            progress=10,
            message="File validation complete",
        ))

        last_strategy: Optional[ParsingStrategy] = None
        last_error: Optional[Exception] = None

        for strategy in self.get_parsing_strategies():
            if not await self._is_available(strategy):
                logger.warning(f"Strategy {strategy.name} is not available, trying next...")
                continue

            last_strategy = strategy
            progress(ProgressEvent(
                stage=ProgressStage.PARSING,
                progress=20,
                message=f"Attempting to parse with {strategy.name}...",
            ))

            try:
                text = await strategy.parse(document, progress)
                if not text or not text.strip():
                    raise ContentExtractionError(NO_TEXT_CONTENT)
            except Exception as e:
                last_error = e
                logger.warning(f"Strategy {strategy.name} failed: {e}")
                continue

            progress(ProgressEvent(
                stage=ProgressStage.COMPLETE,
                progress=100,
                message="PDF parsing completed successfully",
            ))
            logger.info(f"Extracted {len(text)} characters from {document.filename} with {strategy.name}")
            return ParseResult(
                success=True,
                strategy=strategy.name,
                text=text,
                processing_time=_elapsed_ms(start),
                pages=progress.total_pages,
                warnings=validation.warnings,
            )

        if last_strategy is not None:
            progress(ProgressEvent(
                stage=ProgressStage.ERROR,
                progress=0,
                message="All parsing methods failed",
            ))
            return ParseResult(
                success=False,
                strategy=last_strategy.name,
                error=last_strategy.get_error_message(last_error),
                processing_time=_elapsed_ms(start),
                warnings=validation.warnings,
            )

        progress(ProgressEvent(
            stage=ProgressStage.ERROR,
            progress=0,
            message="No parsing methods available",
        ))
        return ParseResult(
            success=False,
            strategy="none",
            error=NO_STRATEGIES_MESSAGE,
            processing_time=_elapsed_ms(start),
            warnings=validation.warnings,
        )
