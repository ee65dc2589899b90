"""
Deadline and backoff helpers for strategies that talk to remote workers.
"""

import asyncio
import logging
from typing import Any, Awaitable, Set, TypeVar

from .errors import ExtractionTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Tasks that lost a deadline race; referenced here so they are not
# garbage collected before they finish cleaning up.
_abandoned: Set["asyncio.Task[Any]"] = set()


def _discard_result(task: "asyncio.Task[Any]") -> None:
    """Consume the outcome of an abandoned task so it is not reported as lost."""
    _abandoned.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Abandoned extraction attempt finished with: {error}")


async def run_with_deadline(work: Awaitable[T], timeout: float, message: str) -> T:
    """
    Await work, raising ExtractionTimeout if it does not finish in time.

    The work is not cancelled when the deadline passes. It keeps running
    in the background so its own cleanup (closing clients, freeing page
    buffers) still happens; its result is discarded.
    """
    task = asyncio.ensure_future(work)
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task in done:
        return task.result()

    _abandoned.add(task)
    task.add_done_callback(_discard_result)
    raise ExtractionTimeout(message)


def backoff_delay(attempt: int, base: float = 1.0, cap: float = 5.0) -> float:
    """Exponential backoff delay (seconds) to wait after a failed attempt."""
    return min(base * (2 ** (attempt - 1)), cap)
