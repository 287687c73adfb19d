"""
app/services/bill_role_backfill_service.py

Re-creates bill roles from stored raw snapshots without calling the source.

Used after persons or bills arrive late: roles that were skipped during a
sync because a referenced row was missing are resolved from the snapshot
log against the current database ids.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import lru_cache
from itertools import islice
from typing import Any

from app.config import get_odata_settings, get_sync_settings
from app.domain.entities import EntityKind
from app.logging_utils import log_event
from app.mappers.bill_mapper import map_bill_initiator
from app.mappers.field_resolution import MappingContext
from app.repositories.sync_store import SqlAlchemySyncStore, SyncStore
from app.sync.stages import entity_values

logger = logging.getLogger(__name__)


@dataclass
class BackfillResult:
    rows_processed: int = 0
    roles_created: int = 0
    roles_updated: int = 0
    roles_skipped: int = 0
    errors: int = 0
    duration_ms: int = 0
    error_messages: list[str] = field(default_factory=list)


def _batched(items: Iterable[dict[str, Any]], size: int) -> Iterator[list[dict[str, Any]]]:
    iterator = iter(items)
    while batch := list(islice(iterator, size)):
        yield batch


class BillRoleBackfillService:
    """
    Replays ``bill_role`` snapshots into the ``bill_roles`` table.
    """

    def __init__(
        self,
        store: SyncStore,
        *,
        context: MappingContext,
        concurrency: int = 3,
        max_error_messages: int = 500,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._context = context
        self._concurrency = max(1, concurrency)
        self._max_error_messages = max(1, max_error_messages)
        self._monotonic = monotonic

    def run(self) -> BackfillResult:
        started = self._monotonic()
        source = self._context.external_source
        persons = self._store.load_id_map(EntityKind.PERSON, source)
        bills = self._store.load_id_map(EntityKind.BILL, source)
        logger.info("Backfill id maps loaded persons=%s bills=%s", len(persons), len(bills))

        result = BackfillResult()
        lock = threading.Lock()

        def process(raw: dict[str, Any]) -> None:
            try:
                entity = map_bill_initiator(raw, self._context)
                person_id = persons.get(entity.person_external_id)
                bill_id = bills.get(entity.bill_external_id)
                if person_id is None or bill_id is None:
                    with lock:
                        result.roles_skipped += 1
                    return
                upserted = self._store.upsert(
                    entity.kind,
                    entity_values(entity, person_id=person_id, bill_id=bill_id),
                )
            except Exception as exc:  # noqa: BLE001
                logger.warning("Backfill record failed error=%s", exc)
                with lock:
                    result.errors += 1
                    if len(result.error_messages) < self._max_error_messages:
                        result.error_messages.append(str(exc))
                return
            with lock:
                if upserted.created:
                    result.roles_created += 1
                else:
                    result.roles_updated += 1

        payloads = self._store.iter_snapshot_payloads(EntityKind.BILL_ROLE, source)
        with ThreadPoolExecutor(max_workers=self._concurrency, thread_name_prefix="bill-role-backfill") as pool:
            for batch in _batched(payloads, self._concurrency * 50):
                result.rows_processed += len(batch)
                for future in [pool.submit(process, raw) for raw in batch]:
                    future.result()

        result.duration_ms = int(round((self._monotonic() - started) * 1000))
        log_event(
            logger,
            logging.INFO,
            "bill_role_backfill_completed",
            rows_processed=result.rows_processed,
            roles_created=result.roles_created,
            roles_updated=result.roles_updated,
            roles_skipped=result.roles_skipped,
            errors=result.errors,
            duration_ms=result.duration_ms,
        )
        return result


@lru_cache(maxsize=1)
def get_bill_role_backfill_service() -> BillRoleBackfillService:
    sync_settings = get_sync_settings()
    return BillRoleBackfillService(
        SqlAlchemySyncStore(),
        context=MappingContext(
            base_url=get_odata_settings().base_url,
            external_source=sync_settings.external_source,
        ),
        concurrency=sync_settings.concurrency,
        max_error_messages=sync_settings.max_error_messages,
    )
