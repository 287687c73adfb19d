"""
app/repositories/sync_store.py

Persistence seams used by the sync pipeline, and their PostgreSQL
implementation.

The pipeline depends only on the ``SyncStore``, ``RunStore`` and
``AggregateStore`` protocols. ``SqlAlchemySyncStore`` opens one short session
per operation, so worker threads never share a session.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.orm import Session

from db.repositories.entity_repository import EntityRepository
from db.repositories.party_topic_repository import ContributionRow, PartyTopicRepository, PartyTopicRow
from db.repositories.snapshot_repository import SnapshotRepository
from db.repositories.sync_run_repository import SyncRunRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpsertResult:
    entity_id: uuid.UUID
    created: bool


@dataclass(frozen=True)
class SnapshotRow:
    entity_kind: str
    entity_id: uuid.UUID | None
    external_source: str
    external_id: str
    sync_run_id: uuid.UUID | None
    payload: dict[str, Any]
    payload_hash: str
    payload_size: int
    fetched_at: datetime


class SyncStore(Protocol):
    def upsert(self, kind: str, values: Mapping[str, Any]) -> UpsertResult:
        ...

    def deactivate_other_memberships(
        self,
        *,
        person_id: uuid.UUID,
        knesset_number: int,
        keep_membership_id: uuid.UUID,
    ) -> int:
        ...

    def update_vote_tallies(
        self,
        vote_id: uuid.UUID,
        *,
        yes_count: int,
        no_count: int,
        abstain_count: int,
        result: str,
        result_confidence: str,
    ) -> None:
        ...

    def upsert_source_link(
        self,
        *,
        entity_kind: str,
        entity_id: uuid.UUID,
        label: str,
        url: str,
        external_source: str,
        external_id: str,
    ) -> None:
        ...

    def insert_snapshot(self, row: SnapshotRow) -> None:
        ...

    def load_id_map(self, kind: str, external_source: str) -> dict[str, uuid.UUID]:
        ...

    def iter_snapshot_payloads(self, kind: str, external_source: str) -> Iterator[dict[str, Any]]:
        ...


class RunStore(Protocol):
    def create_run(self, *, source: str, started_at: datetime, commit_hash: str | None) -> uuid.UUID:
        ...

    def record_discovered(self, run_id: uuid.UUID, names: Sequence[str]) -> None:
        ...

    def finalize_run(
        self,
        run_id: uuid.UUID,
        *,
        status: str,
        completed_at: datetime,
        counts: dict[str, dict[str, int]],
        errors: list[str],
        error_count: int,
        latency_ms: int,
    ) -> None:
        ...


class AggregateStore(Protocol):
    def fetch_contributions(self) -> list[ContributionRow]:
        ...

    def replace_party_topic_aggs(self, rows: Sequence[PartyTopicRow], *, computed_at: datetime) -> int:
        ...


class SqlAlchemySyncStore:
    """
    ``SyncStore``, ``RunStore`` and ``AggregateStore`` over PostgreSQL.
    Every call commits its own short transaction.
    """

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory: Callable[[], Session] = SessionLocal
        else:
            self._session_factory = session_factory

    # ------------------------------------------------------------------
    # SyncStore
    # ------------------------------------------------------------------

    def upsert(self, kind: str, values: Mapping[str, Any]) -> UpsertResult:
        with self._session_factory() as db:
            entity_id, created = EntityRepository(db).upsert(kind, values)
            db.commit()
        return UpsertResult(entity_id=entity_id, created=created)

    def deactivate_other_memberships(
        self,
        *,
        person_id: uuid.UUID,
        knesset_number: int,
        keep_membership_id: uuid.UUID,
    ) -> int:
        with self._session_factory() as db:
            count = EntityRepository(db).deactivate_other_memberships(
                person_id=person_id,
                knesset_number=knesset_number,
                keep_membership_id=keep_membership_id,
            )
            db.commit()
        return count

    def update_vote_tallies(
        self,
        vote_id: uuid.UUID,
        *,
        yes_count: int,
        no_count: int,
        abstain_count: int,
        result: str,
        result_confidence: str,
    ) -> None:
        with self._session_factory() as db:
            EntityRepository(db).update_vote_tallies(
                vote_id,
                yes_count=yes_count,
                no_count=no_count,
                abstain_count=abstain_count,
                result=result,
                result_confidence=result_confidence,
            )
            db.commit()

    def upsert_source_link(
        self,
        *,
        entity_kind: str,
        entity_id: uuid.UUID,
        label: str,
        url: str,
        external_source: str,
        external_id: str,
    ) -> None:
        with self._session_factory() as db:
            EntityRepository(db).upsert_source_link(
                entity_kind=entity_kind,
                entity_id=entity_id,
                label=label,
                url=url,
                external_source=external_source,
                external_id=external_id,
            )
            db.commit()

    def insert_snapshot(self, row: SnapshotRow) -> None:
        with self._session_factory() as db:
            SnapshotRepository(db).insert_snapshot(
                entity_kind=row.entity_kind,
                entity_id=row.entity_id,
                external_source=row.external_source,
                external_id=row.external_id,
                sync_run_id=row.sync_run_id,
                payload=row.payload,
                payload_hash=row.payload_hash,
                payload_size=row.payload_size,
                fetched_at=row.fetched_at,
            )
            db.commit()

    def load_id_map(self, kind: str, external_source: str) -> dict[str, uuid.UUID]:
        with self._session_factory() as db:
            return EntityRepository(db).load_id_map(kind, external_source)

    def iter_snapshot_payloads(self, kind: str, external_source: str) -> Iterator[dict[str, Any]]:
        with self._session_factory() as db:
            yield from SnapshotRepository(db).iter_payloads(
                entity_kind=kind,
                external_source=external_source,
            )

    # ------------------------------------------------------------------
    # RunStore
    # ------------------------------------------------------------------

    def create_run(self, *, source: str, started_at: datetime, commit_hash: str | None) -> uuid.UUID:
        with self._session_factory() as db:
            run = SyncRunRepository(db).create_run(
                source=source,
                started_at=started_at,
                commit_hash=commit_hash,
            )
            db.commit()
            return run.id

    def record_discovered(self, run_id: uuid.UUID, names: Sequence[str]) -> None:
        with self._session_factory() as db:
            SyncRunRepository(db).record_discovered(run_id=run_id, names=list(names))
            db.commit()

    def finalize_run(
        self,
        run_id: uuid.UUID,
        *,
        status: str,
        completed_at: datetime,
        counts: dict[str, dict[str, int]],
        errors: list[str],
        error_count: int,
        latency_ms: int,
    ) -> None:
        with self._session_factory() as db:
            run = SyncRunRepository(db).finalize_run(
                run_id=run_id,
                status=status,
                completed_at=completed_at,
                counts=counts,
                errors=errors,
                error_count=error_count,
                latency_ms=latency_ms,
            )
            if run is None:
                logger.error("Sync run not found for finalization run_id=%s", run_id)
            db.commit()

    # ------------------------------------------------------------------
    # AggregateStore
    # ------------------------------------------------------------------

    def fetch_contributions(self) -> list[ContributionRow]:
        with self._session_factory() as db:
            return PartyTopicRepository(db).fetch_contributions()

    def replace_party_topic_aggs(self, rows: Sequence[PartyTopicRow], *, computed_at: datetime) -> int:
        with self._session_factory() as db:
            written = PartyTopicRepository(db).replace_all(rows, computed_at=computed_at)
            db.commit()
        return written
