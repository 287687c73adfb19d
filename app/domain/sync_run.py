"""
app/domain/sync_run.py

Domain models for sync run lifecycle and counters.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class RunStatus:
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({RunStatus.COMPLETED, RunStatus.PARTIAL, RunStatus.FAILED})

COUNTER_FIELDS: tuple[str, ...] = ("fetched", "created", "updated", "skipped", "failed")


@dataclass
class EntityCounters:
    """
    Per-entity-kind counters accumulated in memory during a run.
    """

    fetched: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in COUNTER_FIELDS}


@dataclass(frozen=True)
class SyncRunResult:
    """
    Final outcome of one sync run.
    """

    run_id: uuid.UUID
    source: str
    status: str
    started_at: datetime
    completed_at: datetime
    latency_ms: int
    counts: dict[str, dict[str, int]]
    errors: list[str] = field(default_factory=list)
    error_count: int = 0
    entity_sets_discovered: list[str] = field(default_factory=list)

    @property
    def total_fetched(self) -> int:
        return sum(counter.get("fetched", 0) for counter in self.counts.values())

    def to_payload(self) -> dict[str, Any]:
        return {
            "run_id": str(self.run_id),
            "source": self.source,
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "latency_ms": self.latency_ms,
            "counts": self.counts,
            "errors": list(self.errors),
            "error_count": self.error_count,
            "entity_sets_discovered": list(self.entity_sets_discovered),
        }


def compute_run_status(*, discovery_failed: bool, total_fetched: int, error_count: int) -> str:
    """
    Derive the terminal run status from aggregated run facts.
    """

    if discovery_failed or total_fetched == 0:
        return RunStatus.FAILED
    if error_count > 0:
        return RunStatus.PARTIAL
    return RunStatus.COMPLETED
