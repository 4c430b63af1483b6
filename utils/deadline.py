"""Bounded-wait helper: race an awaitable against a deadline without cancelling it."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import time
from typing import Any, Awaitable, Generic, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DeadlineResult(Generic[T]):
    """Outcome of ``with_deadline``: either a value or a timeout marker."""

    value: Optional[T] = None
    timed_out: bool = False
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return not self.timed_out


def _discard_late_result(task: "asyncio.Future[Any]") -> None:
    # Consume the outcome so late failures do not surface as "exception was never retrieved".
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Abandoned operation finished late with error: {exc}")
    else:
        logger.debug("Abandoned operation finished late; result discarded")


async def with_deadline(operation: Awaitable[T], duration_ms: int) -> DeadlineResult[T]:
    """
    Wait for ``operation`` at most ``duration_ms`` milliseconds.

    When the deadline wins the operation keeps running in the background and
    its eventual result is dropped. Exceptions raised by the operation before
    the deadline propagate to the caller.
    """
    started = time.monotonic()
    task = asyncio.ensure_future(operation)
    timeout = max(0.0, float(duration_ms) / 1000.0)

    done, _ = await asyncio.wait({task}, timeout=timeout)
    elapsed_ms = int((time.monotonic() - started) * 1000)

    if task not in done:
        task.add_done_callback(_discard_late_result)
        return DeadlineResult(timed_out=True, elapsed_ms=elapsed_ms)

    return DeadlineResult(value=task.result(), elapsed_ms=elapsed_ms)
