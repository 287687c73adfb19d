"""
Repository for sync run lifecycle persistence and status lookup.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.sync_run import SyncRun, SyncRunStatus


class SyncRunRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_run(
        self,
        *,
        source: str,
        started_at: datetime,
        commit_hash: str | None = None,
    ) -> SyncRun:
        run = SyncRun(
            source=source,
            status=SyncRunStatus.RUNNING,
            started_at=started_at,
            commit_hash=commit_hash,
        )
        self._session.add(run)
        self._session.flush()
        self._session.refresh(run)
        return run

    def get_run(self, run_id: uuid.UUID) -> SyncRun | None:
        return self._session.get(SyncRun, run_id)

    def list_runs(
        self,
        *,
        limit: int = 20,
        status: str | None = None,
    ) -> list[SyncRun]:
        stmt: Select[tuple[SyncRun]] = select(SyncRun)
        if status:
            stmt = stmt.where(SyncRun.status == status)
        stmt = stmt.order_by(SyncRun.started_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def record_discovered(self, *, run_id: uuid.UUID, names: list[str]) -> SyncRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.entity_sets_discovered = list(names)
        return run

    def finalize_run(
        self,
        *,
        run_id: uuid.UUID,
        status: str,
        completed_at: datetime,
        counts: dict[str, Any],
        errors: list[str],
        error_count: int,
        latency_ms: int,
    ) -> SyncRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.status = status
        run.completed_at = completed_at
        run.counts_json = counts
        run.errors_json = errors
        run.error_count = error_count
        run.latency_ms = latency_ms
        return run
