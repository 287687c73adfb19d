"""
app/sync/stage.py

Generic runner for one entity-kind sync stage.

Pages are fetched strictly in order. Records of one page are handled by a
run-scoped bounded worker pool, and the page is drained before the next
page is requested.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Protocol

from app.connectors.odata_client import CollectionFetchError
from app.connectors.odata_metadata import DiscoveredSchema
from app.connectors.outbound_guard import SSRFBlockedError
from app.logging_utils import log_event
from app.sync.run_tracker import RunTracker

logger = logging.getLogger(__name__)

RawRecord = dict[str, Any]


class RecordOutcome:
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


class PageSource(Protocol):
    def iter_pages(
        self,
        collection: str,
        *,
        filter: str | None = None,
        orderby: str | None = None,
    ) -> Iterator[list[RawRecord]]:
        ...


def _single_pass(_collection: str) -> Sequence[str | None]:
    return (None,)


@dataclass(frozen=True)
class StageSpec:
    """
    One entity kind to sync.

    ``filters`` returns one ``$filter`` expression per pagination pass over
    the resolved collection; ``None`` means an unfiltered pass.
    ``dedupe_key`` drops records already seen in an earlier pass.
    """

    kind: str
    candidates: tuple[str, ...]
    handler: Callable[[RawRecord], str]
    required: bool = True
    filters: Callable[[str], Sequence[str | None]] = _single_pass
    orderby: str | None = None
    dedupe_key: Callable[[RawRecord], str | None] | None = None
    after: Callable[[], None] | None = None


@dataclass
class StageReport:
    kind: str
    collection: str | None = None
    aborted: bool = False
    counts: dict[str, int] = field(default_factory=dict)


def _describe(raw: RawRecord) -> str:
    for name in ("Id", "ID", "PersonID", "FactionID", "BillID", "CommitteeID", "PersonToPositionID", "VoteID"):
        if raw.get(name) is not None:
            return f"{name}={raw[name]}"
    return "no-id"


class StageRunner:
    """
    Executes stages against one discovered schema, feeding one tracker.
    """

    def __init__(
        self,
        *,
        client: PageSource,
        schema: DiscoveredSchema,
        tracker: RunTracker,
        pool: ThreadPoolExecutor,
    ) -> None:
        self._client = client
        self._schema = schema
        self._tracker = tracker
        self._pool = pool

    def run(self, stage: StageSpec) -> StageReport:
        self._tracker.init_entity(stage.kind)
        report = StageReport(kind=stage.kind)

        collection = self._schema.resolve(stage.candidates)
        if collection is None:
            if stage.required:
                self._tracker.add_error(
                    f"{stage.kind}: no collection found (tried {', '.join(stage.candidates)})"
                )
            else:
                logger.info("Optional collection for %s not exposed; stage skipped", stage.kind)
            report.aborted = True
            report.counts = self._tracker.kind_counts(stage.kind)
            return report

        report.collection = collection
        log_event(logger, logging.INFO, "sync_stage_started", kind=stage.kind, collection=collection)

        seen: set[str] = set()
        for expression in stage.filters(collection):
            try:
                for page in self._client.iter_pages(collection, filter=expression, orderby=stage.orderby):
                    batch = self._dedupe(stage, page, seen)
                    futures = [self._pool.submit(self._process, stage, raw) for raw in batch]
                    for future in futures:
                        future.result()
            except (CollectionFetchError, SSRFBlockedError) as exc:
                logger.error("Fetch aborted kind=%s collection=%s error=%s", stage.kind, collection, exc)
                self._tracker.add_error(f"{stage.kind}: fetch of {collection} aborted: {exc}")
                report.aborted = True
                break
            except Exception as exc:  # noqa: BLE001
                logger.exception("Fetch failed unexpectedly kind=%s collection=%s", stage.kind, collection)
                self._tracker.add_error(f"{stage.kind}: fetch of {collection} aborted: {exc}")
                report.aborted = True
                break

        if stage.after is not None:
            try:
                stage.after()
            except Exception as exc:  # noqa: BLE001
                logger.exception("Stage finishing step failed kind=%s", stage.kind)
                self._tracker.add_error(f"{stage.kind}: finishing step failed: {exc}")
                report.aborted = True

        report.counts = self._tracker.kind_counts(stage.kind)
        log_event(
            logger,
            logging.INFO,
            "sync_stage_completed",
            kind=stage.kind,
            collection=collection,
            aborted=report.aborted,
            **report.counts,
        )
        return report

    def _dedupe(self, stage: StageSpec, page: list[RawRecord], seen: set[str]) -> list[RawRecord]:
        if stage.dedupe_key is None:
            return page
        batch: list[RawRecord] = []
        for raw in page:
            key = stage.dedupe_key(raw)
            if key is not None and key in seen:
                continue
            if key is not None:
                seen.add(key)
            batch.append(raw)
        return batch

    def _process(self, stage: StageSpec, raw: RawRecord) -> None:
        self._tracker.increment(stage.kind, "fetched")
        try:
            outcome = stage.handler(raw)
        except Exception as exc:  # noqa: BLE001
            self._tracker.increment(stage.kind, "failed")
            self._tracker.add_error(f"{stage.kind} record {_describe(raw)} failed: {exc}")
            logger.warning("Record failed kind=%s record=%s error=%s", stage.kind, _describe(raw), exc)
            return
        self._tracker.increment(stage.kind, outcome)
