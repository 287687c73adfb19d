"""
Repository for append-only raw snapshot rows.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.raw_snapshot import RawSnapshot


class SnapshotRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def insert_snapshot(
        self,
        *,
        entity_kind: str,
        entity_id: uuid.UUID | None,
        external_source: str,
        external_id: str,
        sync_run_id: uuid.UUID | None,
        payload: dict[str, Any],
        payload_hash: str,
        payload_size: int,
        fetched_at: datetime,
    ) -> RawSnapshot:
        snapshot = RawSnapshot(
            entity_kind=entity_kind,
            entity_id=entity_id,
            external_source=external_source,
            external_id=external_id,
            sync_run_id=sync_run_id,
            payload=payload,
            payload_hash=payload_hash,
            payload_size=payload_size,
            fetched_at=fetched_at,
        )
        self._session.add(snapshot)
        self._session.flush()
        return snapshot

    def iter_payloads(
        self,
        *,
        entity_kind: str,
        external_source: str,
        batch_size: int = 500,
    ) -> Iterator[dict[str, Any]]:
        """
        Stream stored payloads of one kind, oldest first.
        """
        stmt = (
            select(RawSnapshot.payload)
            .where(
                RawSnapshot.entity_kind == entity_kind,
                RawSnapshot.external_source == external_source,
            )
            .order_by(RawSnapshot.fetched_at)
            .execution_options(yield_per=max(1, batch_size))
        )
        for payload in self._session.scalars(stmt):
            yield payload
