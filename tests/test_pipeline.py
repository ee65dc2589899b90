"""
Tests for the extraction pipeline (validation, ordering, fallback, progress).
"""

import asyncio

import httpx
import pytest

from mockview.config import MockviewSettings
from mockview.extractors import (
    Document,
    ExtractionError,
    ProgressEvent,
    ProgressStage,
    TransientExtractionError,
)
from mockview.extractors.errors import NO_TEXT_CONTENT
from mockview.extractors.pypdf import LocalPDFStrategy
from mockview.extractors.tika import RemoteTikaStrategy
from mockview.pipeline import NO_STRATEGIES_MESSAGE, ExtractionPipeline
from mockview.validation import MIB

from .conftest import FakeStrategy, build_encrypted_pdf, pdf_document


def make_pipeline(*strategies) -> ExtractionPipeline:
    pipeline = ExtractionPipeline()
    for strategy in strategies:
        pipeline.register_strategy(strategy)
    return pipeline


@pytest.fixture
def document(two_page_pdf) -> Document:
    return pdf_document(two_page_pdf)


# =============================================================================
# Validation Tests
# =============================================================================

class TestValidationGate:
    """Invalid uploads never reach a strategy."""

    @pytest.mark.asyncio
    async def test_empty_file_short_circuits(self, events):
        strategy = FakeStrategy("local", 100)
        pipeline = make_pipeline(strategy)

        result = await pipeline.parse_file(pdf_document(b""), events.append)

        assert not result.success
        assert result.strategy == "validation"
        assert result.error == "File cannot be empty"
        assert result.text is None
        assert strategy.probe_calls == 0
        assert strategy.parse_calls == 0
        assert events == []

    @pytest.mark.asyncio
    async def test_errors_joined(self):
        pipeline = make_pipeline(FakeStrategy("local", 100))
        document = Document(content=b"", media_type="text/plain", filename="notes.txt")

        result = await pipeline.parse_file(document)

        assert result.error == (
            "File must be a PDF document, File must have a .pdf extension, File cannot be empty"
        )

    @pytest.mark.asyncio
    async def test_oversized_file(self):
        strategy = FakeStrategy("local", 100)
        pipeline = make_pipeline(strategy)

        result = await pipeline.parse_file(pdf_document(b"x" * (11 * MIB)))

        assert result.strategy == "validation"
        assert result.error == "File size must be less than 10MB"
        assert strategy.parse_calls == 0

    @pytest.mark.asyncio
    async def test_warnings_carried_to_result(self, document):
        pipeline = make_pipeline(FakeStrategy("local", 100))
        pipeline.set_max_file_size(document.size)

        result = await pipeline.parse_file(document)

        assert result.success
        assert result.warnings == ["Large file detected - processing may take longer"]

    def test_validate_file(self, document):
        result = ExtractionPipeline().validate_file(document)
        assert result.is_valid
        assert result.file_size == document.size


# =============================================================================
# Strategy Ordering and Fallback Tests
# =============================================================================

class TestFallback:
    """Tests for priority order and fallback between strategies."""

    @pytest.mark.asyncio
    async def test_highest_priority_wins(self, document):
        low = FakeStrategy("low", 10, text="from low")
        high = FakeStrategy("high", 100, text="from high")
        pipeline = make_pipeline(low, high)

        result = await pipeline.parse_file(document)

        assert result.success
        assert result.strategy == "high"
        assert result.text == "from high"
        assert result.error is None
        assert low.parse_calls == 0

    @pytest.mark.asyncio
    async def test_falls_back_after_failure(self, document):
        high = FakeStrategy("high", 100, error=TransientExtractionError("timeout"))
        low = FakeStrategy("low", 10, text="from low")

        result = await make_pipeline(high, low).parse_file(document)

        assert result.success
        assert result.strategy == "low"
        assert result.text == "from low"
        assert high.parse_calls == 1

    @pytest.mark.asyncio
    async def test_unavailable_strategy_is_skipped(self, document):
        high = FakeStrategy("high", 100, available=False)
        low = FakeStrategy("low", 10, text="from low")

        result = await make_pipeline(high, low).parse_file(document)

        assert result.strategy == "low"
        assert high.probe_calls == 1
        assert high.parse_calls == 0

    @pytest.mark.asyncio
    async def test_probe_exception_counts_as_unavailable(self, document):
        class BrokenProbe(FakeStrategy):
            async def is_available(self):
                raise RuntimeError("probe crashed")

        broken = BrokenProbe("broken", 100)
        low = FakeStrategy("low", 10)

        result = await make_pipeline(broken, low).parse_file(document)

        assert result.strategy == "low"
        assert broken.parse_calls == 0

    @pytest.mark.asyncio
    async def test_whitespace_text_is_a_failure(self, document):
        high = FakeStrategy("high", 100, text="  \n\t ")
        low = FakeStrategy("low", 10, text="real text")

        result = await make_pipeline(high, low).parse_file(document)

        assert result.strategy == "low"
        assert result.text == "real text"

    @pytest.mark.asyncio
    async def test_all_fail_reports_last_strategy(self, document, events):
        high = FakeStrategy("high", 100, error=ExtractionError("worker crashed"))
        low = FakeStrategy("low", 10, error=ExtractionError(NO_TEXT_CONTENT))

        result = await make_pipeline(high, low).parse_file(document, events.append)

        assert not result.success
        assert result.strategy == "low"
        assert result.text is None
        assert result.error == low.get_error_message(ExtractionError(NO_TEXT_CONTENT))
        assert "image-based" in result.error
        assert events[-1].stage == ProgressStage.ERROR
        assert events[-1].progress == 0

    @pytest.mark.asyncio
    async def test_last_attempted_strategy_reports_when_last_is_unavailable(self, document):
        high = FakeStrategy("high", 100, error=TransientExtractionError("timeout"))
        low = FakeStrategy("low", 10, available=False)

        result = await make_pipeline(high, low).parse_file(document)

        assert not result.success
        assert result.strategy == "high"
        assert result.error == "Processing timed out. Trying alternative method..."

    @pytest.mark.asyncio
    async def test_whitespace_only_everywhere_maps_to_no_text(self, document):
        only = FakeStrategy("only", 100, text="   ")

        result = await make_pipeline(only).parse_file(document)

        assert not result.success
        assert "image-based" in result.error

    @pytest.mark.asyncio
    async def test_no_strategies_registered(self, document, events):
        result = await ExtractionPipeline().parse_file(document, events.append)

        assert not result.success
        assert result.strategy == "none"
        assert result.error == NO_STRATEGIES_MESSAGE
        assert events[-1].stage == ProgressStage.ERROR

    @pytest.mark.asyncio
    async def test_all_unavailable(self, document):
        pipeline = make_pipeline(
            FakeStrategy("high", 100, available=False),
            FakeStrategy("low", 10, available=False),
        )

        result = await pipeline.parse_file(document)

        assert result.strategy == "none"
        assert result.error == NO_STRATEGIES_MESSAGE

    @pytest.mark.asyncio
    async def test_has_available_strategies(self):
        assert not await ExtractionPipeline().has_available_strategies()
        assert not await make_pipeline(FakeStrategy("off", 1, available=False)).has_available_strategies()
        assert await make_pipeline(
            FakeStrategy("off", 10, available=False),
            FakeStrategy("on", 1),
        ).has_available_strategies()


# =============================================================================
# Progress Tests
# =============================================================================

class TestProgress:
    """Tests for progress reported across a whole ingestion call."""

    @pytest.mark.asyncio
    async def test_progress_never_decreases_across_fallback(self, document, events):
        high = FakeStrategy(
            "high", 100,
            error=TransientExtractionError("timeout"),
            events=[
                ProgressEvent(ProgressStage.PARSING, 30, "high loading"),
                ProgressEvent(ProgressStage.EXTRACTION, 90, "high extracting"),
            ],
        )
        low = FakeStrategy(
            "low", 10,
            events=[
                ProgressEvent(ProgressStage.PARSING, 30, "low loading"),
                ProgressEvent(ProgressStage.EXTRACTION, 95, "low extracting"),
            ],
        )

        await make_pipeline(high, low).parse_file(document, events.append)

        percentages = [e.progress for e in events]
        assert percentages == sorted(percentages)
        assert events[0].stage == ProgressStage.VALIDATION
        assert events[0].progress == 10
        assert events[-1].stage == ProgressStage.COMPLETE
        assert events[-1].progress == 100
        assert all(e.progress < 100 for e in events[:-1])

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_break_parsing(self, document):
        def broken(event):
            raise RuntimeError("ui gone")

        result = await make_pipeline(FakeStrategy("only", 1)).parse_file(document, broken)
        assert result.success

    @pytest.mark.asyncio
    async def test_local_strategy_end_to_end(self, document, events):
        result = await make_pipeline(LocalPDFStrategy()).parse_file(document, events.append)

        assert result.success
        assert result.strategy == "Local pypdf Worker"
        assert result.pages == 2
        assert "Jane Doe" in result.text
        assert result.processing_time >= 0
        assert [e.progress for e in events] == sorted(e.progress for e in events)
        assert events[-1].progress == 100

    @pytest.mark.asyncio
    async def test_image_only_pdf_with_local_strategy(self, blank_pdf):
        result = await make_pipeline(LocalPDFStrategy()).parse_file(pdf_document(blank_pdf))

        assert not result.success
        assert result.strategy == "Local pypdf Worker"
        assert "image-based" in result.error

    @pytest.mark.asyncio
    async def test_edit_restricted_pdf_succeeds(self):
        pdf = build_encrypted_pdf(["Jane Doe resume text"], owner_password="owner")

        result = await make_pipeline(LocalPDFStrategy()).parse_file(pdf_document(pdf))

        assert result.success
        assert "Jane Doe resume text" in result.text


# =============================================================================
# Remote Fallback Integration Tests
# =============================================================================

class TestRemoteFallback:
    """Local worker missing, remote worker stalls once and then succeeds."""

    @pytest.mark.asyncio
    async def test_timeout_retry_then_success(self, tmp_path, document):
        state = {"puts": 0}

        async def tika(request):
            if request.method == "HEAD":
                return httpx.Response(200)
            state["puts"] += 1
            if state["puts"] == 1:
                await asyncio.sleep(0.4)
            return httpx.Response(200, text=f"Remote page {state['puts']}")

        local = LocalPDFStrategy(worker_path=tmp_path / "missing-worker.js")
        remote = RemoteTikaStrategy(
            base_url="http://tika.test",
            timeout=0.1,
            max_retries=2,
            backoff_base=0.05,
            transport=httpx.MockTransport(tika),
        )

        result = await make_pipeline(local, remote).parse_file(document)

        assert result.success
        assert result.strategy == "Remote Tika Worker"
        assert result.text == "Remote page 2\n\nRemote page 3"
        assert result.pages == 2
        # one timed-out attempt plus one backoff delay
        assert result.processing_time >= 150

        await asyncio.sleep(0.5)


# =============================================================================
# Configuration Tests
# =============================================================================

class TestFromConfig:
    """Tests for building a pipeline from settings."""

    def test_default_strategies(self):
        pipeline = ExtractionPipeline.from_config(MockviewSettings())
        strategies = pipeline.get_parsing_strategies()

        assert [s.name for s in strategies] == ["Local pypdf Worker", "Remote Tika Worker"]
        assert isinstance(strategies[0], LocalPDFStrategy)
        assert isinstance(strategies[1], RemoteTikaStrategy)

    def test_disabled_and_reordered(self):
        config = MockviewSettings()
        config.local_worker.enabled = False
        config.remote_worker.base_url = "http://tika.internal:9998"
        config.remote_worker.timeout = 12.5

        strategies = ExtractionPipeline.from_config(config).get_parsing_strategies()

        assert len(strategies) == 1
        assert strategies[0].get_base_url() == "http://tika.internal:9998"
        assert strategies[0].timeout == 12.5

    def test_priority_from_config(self):
        config = MockviewSettings()
        config.remote_worker.priority = 200

        strategies = ExtractionPipeline.from_config(config).get_parsing_strategies()
        assert strategies[0].name == "Remote Tika Worker"

    def test_max_file_size(self):
        config = MockviewSettings()
        config.extraction.max_file_size = 2 * MIB

        pipeline = ExtractionPipeline.from_config(config)
        assert pipeline.get_max_file_size() == 2 * MIB

        pipeline.set_max_file_size(4 * MIB)
        assert pipeline.get_max_file_size() == 4 * MIB

    def test_invalid_max_file_size(self):
        with pytest.raises(ValueError):
            ExtractionPipeline().set_max_file_size(0)
