"""
app/sync/run_tracker.py

In-memory run counters with a single persisted finalization.

Counters and error messages are buffered in memory and written once by
``complete``. A process that dies mid-run leaves its row in ``running``.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from app.domain.sync_run import (
    COUNTER_FIELDS,
    TERMINAL_STATUSES,
    EntityCounters,
    RunStatus,
    SyncRunResult,
)
from app.logging_utils import log_event
from app.repositories.sync_store import RunStore

logger = logging.getLogger(__name__)


class RunTrackerStateError(RuntimeError):
    """
    Raised when the tracker is used outside its start/complete lifecycle.
    """


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RunTracker:
    """
    Tracks one sync run. Thread-safe for ``increment`` and ``add_error``.
    """

    def __init__(
        self,
        run_store: RunStore,
        *,
        max_error_messages: int = 500,
        clock: Callable[[], datetime] = _utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._run_store = run_store
        self._max_error_messages = max(1, max_error_messages)
        self._clock = clock
        self._monotonic = monotonic
        self._lock = threading.Lock()

        self._run_id: uuid.UUID | None = None
        self._source = ""
        self._started_at: datetime | None = None
        self._started_monotonic = 0.0
        self._counters: dict[str, EntityCounters] = {}
        self._errors: list[str] = []
        self._error_count = 0
        self._discovered: list[str] = []
        self._result: SyncRunResult | None = None

    @property
    def run_id(self) -> uuid.UUID:
        if self._run_id is None:
            raise RunTrackerStateError("Run has not been started.")
        return self._run_id

    @property
    def error_count(self) -> int:
        with self._lock:
            return self._error_count

    @property
    def total_fetched(self) -> int:
        with self._lock:
            return sum(counter.fetched for counter in self._counters.values())

    def start(self, source: str, *, commit_hash: str | None = None) -> uuid.UUID:
        if self._run_id is not None:
            raise RunTrackerStateError(f"Run {self._run_id} was already started.")
        self._source = source
        self._started_at = self._clock()
        self._started_monotonic = self._monotonic()
        self._run_id = self._run_store.create_run(
            source=source,
            started_at=self._started_at,
            commit_hash=commit_hash,
        )
        log_event(logger, logging.INFO, "sync_run_started", run_id=self._run_id, source=source)
        return self._run_id

    def init_entity(self, kind: str) -> None:
        with self._lock:
            self._counters.setdefault(kind, EntityCounters())

    def increment(self, kind: str, field: str, amount: int = 1) -> None:
        if field not in COUNTER_FIELDS:
            raise ValueError(f"Unknown counter field: {field}")
        with self._lock:
            counter = self._counters.setdefault(kind, EntityCounters())
            setattr(counter, field, getattr(counter, field) + amount)

    def add_error(self, message: str) -> None:
        with self._lock:
            self._error_count += 1
            if len(self._errors) < self._max_error_messages:
                self._errors.append(message)

    def record_discovered(self, names: Sequence[str]) -> None:
        self._discovered = list(names)
        self._run_store.record_discovered(self.run_id, self._discovered)

    def counts(self) -> dict[str, dict[str, int]]:
        with self._lock:
            return {kind: counter.to_dict() for kind, counter in self._counters.items()}

    def kind_counts(self, kind: str) -> dict[str, int]:
        with self._lock:
            counter = self._counters.get(kind, EntityCounters())
            return counter.to_dict()

    def complete(self, status: str) -> SyncRunResult:
        """
        Persist final status, counters, errors, and latency in one write.

        Raises:
            RunTrackerStateError: If the run was never started or was
                already completed.
            ValueError: If ``status`` is not a terminal status.
        """

        if status not in TERMINAL_STATUSES:
            raise ValueError(f"Not a terminal run status: {status}")
        run_id = self.run_id
        if self._result is not None:
            raise RunTrackerStateError(f"Run {run_id} was already completed.")

        completed_at = self._clock()
        latency_ms = int(round((self._monotonic() - self._started_monotonic) * 1000))
        with self._lock:
            counts = {kind: counter.to_dict() for kind, counter in self._counters.items()}
            errors = list(self._errors)
            error_count = self._error_count

        self._run_store.finalize_run(
            run_id,
            status=status,
            completed_at=completed_at,
            counts=counts,
            errors=errors,
            error_count=error_count,
            latency_ms=latency_ms,
        )
        self._result = SyncRunResult(
            run_id=run_id,
            source=self._source,
            status=status,
            started_at=self._started_at or completed_at,
            completed_at=completed_at,
            latency_ms=latency_ms,
            counts=counts,
            errors=errors,
            error_count=error_count,
            entity_sets_discovered=list(self._discovered),
        )
        log_event(
            logger,
            logging.ERROR if status == RunStatus.FAILED else logging.INFO,
            "sync_run_completed",
            run_id=run_id,
            status=status,
            latency_ms=latency_ms,
            error_count=error_count,
            counts=counts,
        )
        return self._result
