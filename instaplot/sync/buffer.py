"""
Freeform Buffer Session

A live, editable JSON view of the board. Each edit cancels the pending
parse and schedules a new one after a quiet interval, so at most one
parse is ever pending. When the timer fires the draft goes through the
bulk sync validator; drafts that do not parse are skipped silently.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Callable, Optional
import contextlib
import logging
import threading

from ..contracts.events import BufferSyncOutcome, BufferSyncStatus

if TYPE_CHECKING:
    from . import BulkSyncEngine

logger = logging.getLogger("instaplot.sync.buffer")


class ThreadingScheduler:
    """Runs callbacks on daemon `threading.Timer` threads."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> Any:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class FreeformBuffer:
    """
    Debounced text-to-store sync.

    `scheduler` must provide `schedule(delay, callback) -> handle` where
    the handle has `cancel()`. `lock` serializes the fired parse with the
    rest of the board's mutations.
    """

    def __init__(
        self,
        sync_engine: BulkSyncEngine,
        initial_text: str = "",
        interval: Optional[float] = None,
        scheduler: Optional[Any] = None,
        lock: Optional[Any] = None,
        on_applied: Optional[Callable[[BufferSyncOutcome], None]] = None
    ):
        self._sync = sync_engine
        self._text = initial_text
        self._interval = sync_engine.config.debounce_seconds if interval is None else interval
        self._scheduler = scheduler or ThreadingScheduler()
        self._lock = lock
        self._on_applied = on_applied

        self._state_lock = threading.Lock()
        self._pending = None
        self._generation = 0
        self._closed = False
        self._last_outcome: Optional[BufferSyncOutcome] = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_outcome(self) -> Optional[BufferSyncOutcome]:
        return self._last_outcome

    def edit(self, text: str):
        """Replace the draft and (re)arm the debounce timer."""
        with self._state_lock:
            if self._closed:
                raise RuntimeError("Freeform buffer is closed")
            self._text = text
            self._cancel_pending()
            self._generation += 1
            generation = self._generation
            self._pending = self._scheduler.schedule(
                self._interval, lambda: self._fire(generation)
            )

    def flush(self) -> Optional[BufferSyncOutcome]:
        """Run a pending parse now. Returns None when nothing was pending."""
        with self._state_lock:
            if self._pending is None:
                return None
            self._cancel_pending()
            self._generation += 1
            text = self._text
        return self._run(text)

    def close(self):
        """Stop syncing. A pending parse is dropped, not run."""
        with self._state_lock:
            self._cancel_pending()
            self._generation += 1
            self._closed = True
        self._last_outcome = BufferSyncOutcome(BufferSyncStatus.CANCELLED)

    def _fire(self, generation: int):
        with self._state_lock:
            if generation != self._generation or self._closed:
                return
            self._pending = None
            text = self._text
        self._run(text)

    def _run(self, text: str) -> BufferSyncOutcome:
        guard = self._lock if self._lock is not None else contextlib.nullcontext()
        with guard:
            # close() may have landed after the timer fired
            if self._closed:
                return BufferSyncOutcome(BufferSyncStatus.CANCELLED)
            outcome = self._sync.sync_buffer(text)
            if outcome.applied and self._on_applied:
                self._on_applied(outcome)
        self._last_outcome = outcome
        if not outcome.applied:
            logger.debug("Buffer draft not applied: %s", outcome.status.value)
        return outcome

    def _cancel_pending(self):
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
