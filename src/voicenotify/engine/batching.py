"""
Batch Window — debounce collector for same-kind requests.

Five permission requests arriving within a few hundred milliseconds should
produce one "5 permissions need your approval" notification, not five
overlapping beeps. Every add() restarts the window, so a steady trickle keeps
deferring the flush: one notification per burst.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchEntry:
    """One pending request. ``weight`` is the sub-question count for questions."""

    request_id: str
    weight: int = 1


ProcessBatch = Callable[[list[BatchEntry]], Awaitable[None]]


class BatchWindow:
    """Collects entries until the window passes without a new arrival."""

    def __init__(self, kind: str, window_seconds: float, process: ProcessBatch) -> None:
        self.kind = kind
        self.window_seconds = window_seconds
        self._process = process
        self._entries: dict[str, BatchEntry] = {}  # insertion-ordered
        self._timer: asyncio.Task[None] | None = None
        # Timer task that is past its window and rendering a drained batch
        self._inflight: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._entries

    @property
    def total_weight(self) -> int:
        return sum(entry.weight for entry in self._entries.values())

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def add(self, request_id: str, weight: int = 1) -> bool:
        """Add a request and restart the window. Returns False for duplicates.

        Duplicates still restart the window: the host re-announcing a request
        is a sign the burst is ongoing.
        """
        added = request_id not in self._entries
        if added:
            self._entries[request_id] = BatchEntry(request_id, max(1, weight))
        else:
            logger.debug("Batch %s: duplicate id %s ignored", self.kind, request_id)

        self._cancel_timer()
        self._timer = asyncio.create_task(
            self._debounce(), name=f"batch-window-{self.kind}"
        )
        return added

    def remove(self, request_id: str) -> bool:
        """Drop a request answered before the window closed."""
        if self._entries.pop(request_id, None) is None:
            return False
        if not self._entries:
            self._cancel_timer()
            logger.debug("Batch %s: emptied before flush, timer cancelled", self.kind)
        return True

    def clear(self) -> None:
        """Discard everything without processing (session reset)."""
        self._entries.clear()
        self._cancel_timer()

    @property
    def processing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def aclose(self) -> None:
        """Discard pending entries and cancel a batch still being rendered."""
        self.clear()
        inflight, self._inflight = self._inflight, None
        if inflight and not inflight.done() and inflight is not asyncio.current_task():
            inflight.cancel()
            await asyncio.gather(inflight, return_exceptions=True)

    async def flush(self) -> None:
        """Drain all entries and hand them to the process callback once."""
        drained = list(self._entries.values())
        self._entries.clear()
        # Cleared before processing so a new add() starts a fresh window
        # instead of cancelling the batch being rendered.
        current = asyncio.current_task()
        from_timer = self._timer is current
        if from_timer:
            self._timer = None
        else:
            self._cancel_timer()
        if not drained:
            return
        if from_timer:
            self._inflight = current
        logger.debug("Batch %s: flushing %d entries", self.kind, len(drained))
        try:
            await self._process(drained)
        finally:
            if self._inflight is current:
                self._inflight = None

    async def _debounce(self) -> None:
        try:
            await asyncio.sleep(self.window_seconds)
        except asyncio.CancelledError:
            return  # Window restarted or emptied
        try:
            await self.flush()
        except Exception as e:
            logger.error("Batch %s processing failed: %s", self.kind, e, exc_info=True)

    def _cancel_timer(self) -> None:
        if self._timer and not self._timer.done():
            self._timer.cancel()
        self._timer = None
