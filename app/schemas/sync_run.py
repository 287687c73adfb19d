"""
app/schemas/sync_run.py

JSON report schemas printed by the sync, aggregate and backfill commands.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.sync_run import SyncRunResult
from app.services.bill_role_backfill_service import BackfillResult
from app.services.party_topic_aggregation_service import AggregateResult


class EntityCountsResponse(BaseModel):
    fetched: int = Field(0, ge=0)
    created: int = Field(0, ge=0)
    updated: int = Field(0, ge=0)
    skipped: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)


class SyncRunReport(BaseModel):
    """
    Outcome of one sync run.
    """

    run_id: str
    source: str
    status: str
    started_at: datetime
    completed_at: datetime
    latency_ms: int = Field(..., ge=0)
    counts: dict[str, EntityCountsResponse] = Field(default_factory=dict)
    error_count: int = Field(0, ge=0)
    errors: list[str] = Field(default_factory=list)
    entity_sets_discovered: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: SyncRunResult) -> "SyncRunReport":
        return cls(
            run_id=str(result.run_id),
            source=result.source,
            status=result.status,
            started_at=result.started_at,
            completed_at=result.completed_at,
            latency_ms=max(0, result.latency_ms),
            counts={kind: EntityCountsResponse(**counts) for kind, counts in result.counts.items()},
            error_count=result.error_count,
            errors=list(result.errors),
            entity_sets_discovered=list(result.entity_sets_discovered),
        )


class AggregateReport(BaseModel):
    rows_written: int = Field(..., ge=0)
    parties_updated: int = Field(..., ge=0)
    duration_ms: int = Field(..., ge=0)

    @classmethod
    def from_result(cls, result: AggregateResult) -> "AggregateReport":
        return cls(
            rows_written=result.rows_written,
            parties_updated=result.parties_updated,
            duration_ms=max(0, result.duration_ms),
        )


class BackfillReport(BaseModel):
    rows_processed: int = Field(..., ge=0)
    roles_created: int = Field(..., ge=0)
    roles_updated: int = Field(..., ge=0)
    roles_skipped: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)
    duration_ms: int = Field(..., ge=0)
    error_messages: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: BackfillResult) -> "BackfillReport":
        return cls(
            rows_processed=result.rows_processed,
            roles_created=result.roles_created,
            roles_updated=result.roles_updated,
            roles_skipped=result.roles_skipped,
            errors=result.errors,
            duration_ms=max(0, result.duration_ms),
            error_messages=list(result.error_messages),
        )
