"""Batch orchestrator that drives the lookup client over a list of numbers."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Protocol

from ..models import BatchResults, BatchState, BatchSummary, LookupResult, SavedState, utc_now
from ..rate_limit import DelayPolicy, Sleeper
from ..storage import RESULTS_MAX_AGE, StateStore, load_saved_state, snapshot_state

LOGGER = logging.getLogger(__name__)


class BatchInProgressError(RuntimeError):
    """Raised when a batch is started while another one is still running."""


class LookupClientProtocol(Protocol):
    """Interface the orchestrator expects from a lookup client."""

    def check(self, number: str) -> LookupResult:  # pragma: no cover - runtime protocol
        """Classify a single canonical number."""


class BatchObserver(Protocol):
    """Presentation-layer hooks invoked while a batch runs."""

    def on_start(self, total: int) -> None:  # pragma: no cover - runtime protocol
        ...

    def on_result(self, result: LookupResult) -> None:  # pragma: no cover - runtime protocol
        ...

    def on_progress(self, current: int, total: int) -> None:  # pragma: no cover - runtime protocol
        ...

    def on_complete(self, summary: BatchSummary) -> None:  # pragma: no cover - runtime protocol
        ...


@dataclass
class CallbackObserver:
    """Adapts optional plain callables to :class:`BatchObserver`."""

    start_callback: Optional[Callable[[int], None]] = None
    result_callback: Optional[Callable[[LookupResult], None]] = None
    progress_callback: Optional[Callable[[int, int], None]] = None
    complete_callback: Optional[Callable[[BatchSummary], None]] = None

    def on_start(self, total: int) -> None:
        if self.start_callback:
            self.start_callback(total)

    def on_result(self, result: LookupResult) -> None:
        if self.result_callback:
            self.result_callback(result)

    def on_progress(self, current: int, total: int) -> None:
        if self.progress_callback:
            self.progress_callback(current, total)

    def on_complete(self, summary: BatchSummary) -> None:
        if self.complete_callback:
            self.complete_callback(summary)


class BatchOrchestrator:
    """Checks numbers strictly one after another and keeps the batch state.

    At most one batch runs at a time. Every recorded result is persisted to
    the state store, and cancellation is honoured between numbers.
    """

    def __init__(
        self,
        client: LookupClientProtocol,
        *,
        store: Optional[StateStore] = None,
        observer: Optional[BatchObserver] = None,
        request_delay: Optional[DelayPolicy] = None,
        sleep: Sleeper = time.sleep,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._client = client
        self._store = store
        self._observer = observer or CallbackObserver()
        self._request_delay = request_delay or DelayPolicy()
        self._sleep = sleep
        self._now = now
        self._state = BatchState()
        self._run_lock = threading.Lock()
        self._state_lock = threading.RLock()
        self._stop_event = threading.Event()

    @property
    def client(self) -> LookupClientProtocol:
        return self._client

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._state.processing

    def run(
        self,
        numbers: Iterable[str],
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[BatchSummary]:
        """Check every number and return the summary, or ``None`` if there was nothing to check."""

        if not self._run_lock.acquire(blocking=False):
            raise BatchInProgressError("Processing is already in progress")
        try:
            numbers = list(numbers)
            if not numbers:
                LOGGER.warning("Nothing to check - no phone numbers were supplied")
                return None
            return self._run_batch(numbers, cancel_event or threading.Event())
        finally:
            self._state.processing = False
            self._run_lock.release()

    def _run_batch(self, numbers: list[str], cancel_event: threading.Event) -> BatchSummary:
        self._stop_event = cancel_event
        state = self._state = BatchState.start(numbers, self._now())
        total = len(numbers)
        self._observer.on_start(total)
        self._persist(state)

        cancelled = False
        for index, number in enumerate(numbers):
            if cancel_event.is_set():
                cancelled = True
                break

            result = self._client.check(number)
            with self._state_lock:
                if state is not self._state:
                    # reset() discarded this batch while the lookup was in flight
                    return self._discarded(state)
                state.record(result)
                self._observer.on_result(result)
                self._observer.on_progress(index + 1, total)
                self._persist(state)

            if index < total - 1:
                self._request_delay.pause(self._sleep)

        with self._state_lock:
            if state is not self._state:
                return self._discarded(state)
            state.processing = False
            summary = BatchSummary.from_state(state, self._now(), cancelled=cancelled)
            self._persist(state)
            if cancelled:
                LOGGER.info("Batch stopped after %s of %s numbers", summary.processed, summary.total)
            else:
                LOGGER.info("Processed %s numbers: %s clean, %s dnc, %s invalid", total, summary.clean, summary.dnc, summary.invalid)
            self._observer.on_complete(summary)
        return summary

    def _discarded(self, state: BatchState) -> BatchSummary:
        LOGGER.info("Batch discarded by reset after %s of %s numbers", state.counters.processed, state.counters.total)
        state.processing = False
        return BatchSummary.from_state(state, self._now(), cancelled=True)

    def stop(self) -> None:
        if self._state.processing:
            LOGGER.info("Cancellation requested")
            self._stop_event.set()

    def reset(self) -> None:
        """Stop any running batch and discard its state, including the stored copy.

        A batch discarded this way reports nothing further to the observer.
        """

        self.stop()
        with self._state_lock:
            self._state = BatchState(processing=self._state.processing)
            if self._store is not None:
                self._store.clear()

    def restore(self, *, max_age: timedelta = RESULTS_MAX_AGE) -> Optional[SavedState]:
        if self._store is None or self._state.processing:
            return None
        saved = load_saved_state(self._store, now=self._now(), max_age=max_age)
        if saved is None:
            return None
        results = saved.results or BatchResults()
        self._state = BatchState(input_numbers=list(saved.numbers), results=results)
        self._state.counters.total = results.total()
        self._state.counters.processed = results.total()
        return saved

    def summary(self) -> BatchSummary:
        return BatchSummary.from_state(self._state, self._now())

    def _persist(self, state: BatchState) -> None:
        if self._store is None or state is not self._state:
            return
        try:
            self._store.save(snapshot_state(state, self._now()))
        except OSError as exc:
            LOGGER.warning("Failed to save state: %s", exc)
