"""
app/sync/snapshot.py

Content-hashed copies of raw records for audit and replay.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from app.repositories.sync_store import SnapshotRow, SyncStore

logger = logging.getLogger(__name__)


def serialize_payload(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )


def hash_payload(serialized: str) -> str:
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


class SnapshotService:
    """
    Stores one snapshot per processed record. ``save`` never raises.
    """

    def __init__(
        self,
        store: SyncStore,
        *,
        external_source: str,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._store = store
        self._external_source = external_source
        self._clock = clock

    def save(
        self,
        entity_kind: str,
        entity_id: uuid.UUID | None,
        external_key: str,
        run_id: uuid.UUID | None,
        payload: dict[str, Any],
    ) -> None:
        try:
            serialized = serialize_payload(payload)
            self._store.insert_snapshot(
                SnapshotRow(
                    entity_kind=entity_kind,
                    entity_id=entity_id,
                    external_source=self._external_source,
                    external_id=external_key,
                    sync_run_id=run_id,
                    payload=json.loads(serialized),
                    payload_hash=hash_payload(serialized),
                    payload_size=len(serialized.encode("utf-8")),
                    fetched_at=self._clock(),
                )
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Snapshot save failed kind=%s external_id=%s error=%s",
                entity_kind,
                external_key,
                exc,
            )
