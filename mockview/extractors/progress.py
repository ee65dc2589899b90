"""
Progress reporting for resume ingestion.

Progress is delivered through an optional plain callback. Nothing is
buffered: a consumer renders the last event it saw.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ProgressStage(str, Enum):
    """Coarse stage of an ingestion attempt."""

    VALIDATION = "validation"
    PARSING = "parsing"
    EXTRACTION = "extraction"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress update."""

    stage: ProgressStage
    progress: int  # 0-100
    message: str
    current_page: Optional[int] = None
    total_pages: Optional[int] = None
    estimated_time_remaining: Optional[float] = None  # seconds


ProgressCallback = Callable[[ProgressEvent], None]


def report(callback: Optional[ProgressCallback], event: ProgressEvent) -> None:
    """Deliver an event to the callback, if there is one."""
    if callback is None:
        return
    try:
        callback(event)
    except Exception as e:
        logger.warning(f"Progress callback raised {type(e).__name__}: {e}")


def estimate_remaining(elapsed: float, done: int, total: int) -> Optional[float]:
    """Estimate seconds left from the average time per finished page."""
    if done <= 0 or total <= done:
        return None
    return round(elapsed / done * (total - done), 1)


class ProgressGate:
    """
    Forwards events until closed.

    Used to silence an attempt that lost its timeout race; the abandoned
    work keeps running to release its resources but can no longer report.
    """

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self._open = True

    def __call__(self, event: ProgressEvent) -> None:
        if self._open:
            report(self._callback, event)

    def close(self) -> None:
        self._open = False


class MonotonicProgress:
    """
    Relay that keeps percentages non-decreasing within one ingestion call.

    A fallback strategy restarts its own numbering, so its events are held
    at the high-water mark. Only the complete stage may report 100 and the
    error stage always reports 0. The last reported page count is kept
    for the final result.
    """

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self._high_water = 0
        self.total_pages: Optional[int] = None

    @property
    def high_water(self) -> int:
        return self._high_water

    def __call__(self, event: ProgressEvent) -> None:
        if event.total_pages is not None:
            self.total_pages = event.total_pages
        if self._callback is None:
            return

        if event.stage == ProgressStage.ERROR:
            progress = 0
        elif event.stage == ProgressStage.COMPLETE:
            progress = 100
        else:
            progress = min(max(event.progress, self._high_water, 0), 99)
        self._high_water = max(self._high_water, progress)

        if progress != event.progress:
            event = replace(event, progress=progress)
        report(self._callback, event)
