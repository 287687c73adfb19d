"""
app/services/sync_orchestrator_service.py

Runs one full Knesset sync: discovery, then every entity stage in order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from functools import lru_cache
from typing import Protocol

from app.config import (
    SyncSettings,
    get_odata_settings,
    get_outbound_guard_settings,
    get_sync_settings,
)
from app.connectors.odata_client import ODataCollectionClient
from app.connectors.odata_metadata import DiscoveredSchema, MetadataUnavailableError, SchemaDiscovery
from app.connectors.response_cache import InMemoryResponseCache
from app.domain.sync_run import RunStatus, SyncRunResult, compute_run_status
from app.mappers.field_resolution import MappingContext, utc_now
from app.repositories.sync_store import RunStore, SqlAlchemySyncStore, SyncStore
from app.sync.run_tracker import RunTracker
from app.sync.snapshot import SnapshotService
from app.sync.stage import PageSource, StageReport, StageRunner
from app.sync.stages import SyncStages

logger = logging.getLogger(__name__)


class SchemaSource(Protocol):
    def discover(self, metadata_url: str | None = None) -> DiscoveredSchema:
        ...


class SyncStoreWithRuns(SyncStore, RunStore, Protocol):
    pass


class SyncOrchestrator:
    """
    Coordinates one sync run end to end.

    A run always ends with a persisted terminal status, including when
    discovery fails or an unexpected error escapes a stage.
    """

    def __init__(
        self,
        *,
        store: SyncStoreWithRuns,
        client: PageSource,
        discovery: SchemaSource,
        settings: SyncSettings,
        base_url: str,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._client = client
        self._discovery = discovery
        self._settings = settings
        self._base_url = base_url
        self._clock = clock

    def run(self) -> SyncRunResult:
        tracker = RunTracker(
            self._store,
            max_error_messages=self._settings.max_error_messages,
            clock=self._clock,
        )
        tracker.start(self._settings.external_source, commit_hash=self._settings.commit_hash)

        try:
            schema = self._discovery.discover()
            tracker.record_discovered(schema.names)
            self._run_stages(tracker, schema)
        except MetadataUnavailableError as exc:
            logger.error("Schema discovery failed run_id=%s error=%s", tracker.run_id, exc)
            tracker.add_error(f"Discovery failed: {exc}")
            return tracker.complete(RunStatus.FAILED)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Sync run aborted run_id=%s", tracker.run_id)
            tracker.add_error(f"Fatal: {exc}")
            return tracker.complete(RunStatus.FAILED)

        status = compute_run_status(
            discovery_failed=False,
            total_fetched=tracker.total_fetched,
            error_count=tracker.error_count,
        )
        return tracker.complete(status)

    def _run_stages(self, tracker: RunTracker, schema: DiscoveredSchema) -> list[StageReport]:
        context = MappingContext(
            base_url=self._base_url,
            external_source=self._settings.external_source,
            clock=self._clock,
        )
        stages = SyncStages(
            store=self._store,
            snapshots=SnapshotService(
                self._store,
                external_source=self._settings.external_source,
                clock=self._clock,
            ),
            context=context,
            run_id=tracker.run_id,
            sync_vote_records=self._settings.sync_vote_records,
        )

        reports: list[StageReport] = []
        with ThreadPoolExecutor(
            max_workers=max(1, self._settings.concurrency),
            thread_name_prefix="knesset-sync",
        ) as pool:
            runner = StageRunner(client=self._client, schema=schema, tracker=tracker, pool=pool)
            for stage in stages.build():
                reports.append(runner.run(stage))
        return reports


@lru_cache(maxsize=1)
def get_sync_orchestrator() -> SyncOrchestrator:
    """
    Build and cache the production sync orchestrator.
    """

    odata_settings = get_odata_settings()
    guard_settings = get_outbound_guard_settings()
    sync_settings = get_sync_settings()
    client = ODataCollectionClient(
        http_settings=odata_settings,
        guard_settings=guard_settings,
        source=sync_settings.external_source,
    )
    discovery = SchemaDiscovery(
        http_settings=odata_settings,
        guard_settings=guard_settings,
        cache=InMemoryResponseCache(),
        cache_ttl_seconds=sync_settings.metadata_cache_ttl_seconds,
    )
    return SyncOrchestrator(
        store=SqlAlchemySyncStore(),
        client=client,
        discovery=discovery,
        settings=sync_settings,
        base_url=client.base_url,
    )
