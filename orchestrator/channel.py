"""Ordered, single-consumer progress channel for one run."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, List, Optional

from core import (
    CompleteEvent,
    EnrichmentResult,
    ErrorEvent,
    ProgressEvent,
    ProgressUpdate,
    RunSummary,
    StartEvent,
)
from utils.exceptions import ChannelClosedError, ChannelStateError


logger = logging.getLogger(__name__)


class ChannelState(str, Enum):
    OPEN = "open"
    EMITTING = "emitting"
    CLOSED = "closed"


_CLOSE = object()


class ProgressChannel:
    """One run's events: start, progress, then exactly one complete or error."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        self.state = ChannelState.OPEN
        self.history: List[ProgressEvent] = []
        self._queue: "asyncio.Queue[object]" = asyncio.Queue()

    @property
    def closed(self) -> bool:
        return self.state == ChannelState.CLOSED

    def start(self, limit: int) -> StartEvent:
        self._ensure_not_closed("start")
        if self.state != ChannelState.OPEN:
            raise ChannelStateError("start already sent", {"run_id": self.run_id})
        event = StartEvent(run_id=self.run_id, limit=limit)
        self.state = ChannelState.EMITTING
        self._push(event)
        return event

    def progress(self, update: ProgressUpdate) -> None:
        self._ensure_not_closed("progress")
        if self.state != ChannelState.EMITTING:
            raise ChannelStateError("progress before start", {"run_id": self.run_id})
        self._push(update)

    def complete(self, results: List[EnrichmentResult], summary: RunSummary) -> CompleteEvent:
        self._ensure_not_closed("complete")
        if self.state != ChannelState.EMITTING:
            raise ChannelStateError("complete before start", {"run_id": self.run_id})
        event = CompleteEvent(results=list(results), summary=summary)
        self._push(event)
        self._finish()
        return event

    def fail(self, message: str) -> ErrorEvent:
        self._ensure_not_closed("error")
        event = ErrorEvent(message=str(message) or "Unknown error")
        self._push(event)
        self._finish()
        return event

    def close(self) -> None:
        """Close without a terminal event (consumer went away)."""
        if self.closed:
            return
        logger.info(f"[Channel] {self.run_id} closed without terminal event")
        self._finish()

    async def events(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self.next_event()
            if event is None:
                return
            yield event

    async def next_event(self, timeout: Optional[float] = None) -> Optional[ProgressEvent]:
        """Next event, or None once closed. Raises asyncio.TimeoutError after ``timeout``."""
        item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _CLOSE:
            # keep the marker for any later reader
            self._queue.put_nowait(_CLOSE)
            return None
        return item

    def _ensure_not_closed(self, kind: str) -> None:
        if self.closed:
            raise ChannelClosedError(f"cannot send {kind} on a closed channel", {"run_id": self.run_id})

    def _push(self, event: ProgressEvent) -> None:
        self.history.append(event)
        self._queue.put_nowait(event)

    def _finish(self) -> None:
        self.state = ChannelState.CLOSED
        self._queue.put_nowait(_CLOSE)
