"""
db/models/sync_run.py

Sync run model for pipeline provenance and per-entity counters.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class SyncRunStatus:
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class SyncRun(Base, TimestampMixin):
    __tablename__ = "sync_runs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    source: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=SyncRunStatus.RUNNING,
        comment="running, completed, partial, failed",
    )
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    entity_sets_discovered: Mapped[list[str] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Collection names exposed by the metadata document",
    )
    counts_json: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Per entity kind: fetched, created, updated, skipped, failed",
    )
    errors_json: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    latency_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    commit_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        Index("ix_sync_runs_status", "status"),
        Index("ix_sync_runs_started_at", "started_at"),
    )
