"""
tests/conftest.py

Shared fakes: a stub ``requests.Session`` serving an OData feed from memory,
and an in-memory store implementing the pipeline's persistence protocols.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Iterator, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlsplit

import pytest
import requests

from app.config import ODataSettings, OutboundGuardSettings
from app.repositories.sync_store import SnapshotRow, UpsertResult
from db.repositories.entity_repository import ID_MAP_MODELS, UPSERT_TARGETS
from db.repositories.party_topic_repository import ContributionRow, PartyTopicRow

BASE_URL = "https://knesset.gov.il/OdataV4/ParliamentInfo"
METADATA_URL = BASE_URL + "/$metadata"

_NO_JSON = object()


# ---------------------------------------------------------------------------
# HTTP fakes
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = _NO_JSON, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is _NO_JSON:
            raise ValueError("No JSON body")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)  # type: ignore[arg-type]


class FakeSession:
    """
    Records every request. Responses come from a queue when one is given,
    otherwise from ``handler(url, params)``.
    """

    def __init__(self, responses: Sequence[Any] | None = None, handler: Any = None) -> None:
        self._responses = list(responses or [])
        self._handler = handler
        self.calls: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> FakeResponse:
        with self._lock:
            self.calls.append(
                {"method": method, "url": url, "params": dict(params or {}), "headers": dict(headers or {})}
            )
            if self._responses:
                item = self._responses.pop(0)
                if isinstance(item, Exception):
                    raise item
                return item
        if self._handler is None:
            raise AssertionError(f"Unexpected request to {url}")
        return self._handler(url, dict(params or {}))


def metadata_xml(entity_sets: Sequence[str], namespace: str = "ParliamentInfo") -> str:
    types = "".join(
        f'<EntityType Name="{name}"><Key><PropertyRef Name="Id"/></Key>'
        f'<Property Name="Id" Type="Edm.Int32" Nullable="false"/>'
        f'<Property Name="Name" Type="Edm.String"/></EntityType>'
        for name in entity_sets
    )
    sets = "".join(
        f'<EntitySet Name="{name}" EntityType="{namespace}.{name}"/>' for name in entity_sets
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<edmx:Edmx Version="4.0" xmlns:edmx="http://docs.oasis-open.org/odata/ns/edmx">'
        "<edmx:DataServices>"
        f'<Schema Namespace="{namespace}" xmlns="http://docs.oasis-open.org/odata/ns/edm">'
        f"{types}"
        f'<EntityContainer Name="Container">{sets}</EntityContainer>'
        "</Schema>"
        "</edmx:DataServices>"
        "</edmx:Edmx>"
    )


def _matches_filter(record: Mapping[str, Any], expression: str | None) -> bool:
    if not expression:
        return True
    field_name, operator, value = expression.split(" ", 2)
    if operator == "ne" and value == "null":
        return record.get(field_name) is not None
    if operator == "eq":
        return str(record.get(field_name)) == value
    raise AssertionError(f"Unsupported filter {expression!r}")


class FakeODataServer:
    """
    Serves ``$metadata`` and ``$top``/``$skip`` pages for in-memory collections.

    ``failing`` maps a collection to an HTTP status to answer with, or to an
    exception the transport raises.
    """

    def __init__(
        self,
        collections: Mapping[str, list[dict[str, Any]]],
        *,
        base_url: str = BASE_URL,
        failing: Mapping[str, int | Exception] | None = None,
        metadata_status: int = 200,
    ) -> None:
        self.collections = {name: list(rows) for name, rows in collections.items()}
        self.base_url = base_url
        self.failing = dict(failing or {})
        self.metadata_status = metadata_status
        self.session = FakeSession(handler=self.handle)

    def handle(self, url: str, params: dict[str, Any]) -> FakeResponse:
        path = urlsplit(url).path.rstrip("/")
        name = path.rsplit("/", 1)[-1]
        if name == "$metadata":
            if self.metadata_status != 200:
                return FakeResponse(status_code=self.metadata_status)
            return FakeResponse(text=metadata_xml(list(self.collections)))
        if name in self.failing:
            failure = self.failing[name]
            if isinstance(failure, Exception):
                raise failure
            return FakeResponse(status_code=failure)
        if name not in self.collections:
            return FakeResponse(status_code=404)

        rows = [row for row in self.collections[name] if _matches_filter(row, params.get("$filter"))]
        top = int(params.get("$top", 100))
        skip = int(params.get("$skip", 0))
        return FakeResponse(payload={"value": rows[skip : skip + top]})

    def page_requests(self, collection: str) -> list[dict[str, Any]]:
        return [
            call["params"]
            for call in self.session.calls
            if urlsplit(call["url"]).path.endswith("/" + collection)
        ]


# ---------------------------------------------------------------------------
# Persistence fake
# ---------------------------------------------------------------------------


class InMemoryStore:
    """
    ``SyncStore``, ``RunStore`` and ``AggregateStore`` backed by dicts.

    Upserts honour the same natural keys as the PostgreSQL store.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.rows: dict[str, dict[tuple[Any, ...], dict[str, Any]]] = {kind: {} for kind in UPSERT_TARGETS}
        self.source_links: dict[str, dict[str, Any]] = {}
        self.snapshots: list[SnapshotRow] = []
        self.runs: dict[uuid.UUID, dict[str, Any]] = {}
        self.finalize_calls = 0
        self.contributions: list[ContributionRow] = []
        self.party_topic_aggs: list[PartyTopicRow] = []
        self.aggs_computed_at: datetime | None = None
        self.fail_snapshots = False
        self.fail_upsert_kinds: set[str] = set()

    # SyncStore

    def upsert(self, kind: str, values: Mapping[str, Any]) -> UpsertResult:
        if kind in self.fail_upsert_kinds:
            raise RuntimeError(f"database unavailable for {kind}")
        key_columns = UPSERT_TARGETS[kind].key_columns
        key = tuple(values[name] for name in key_columns)
        with self._lock:
            table = self.rows[kind]
            existing = table.get(key)
            if existing is None:
                table[key] = {"id": uuid.uuid4(), **values}
                return UpsertResult(entity_id=table[key]["id"], created=True)
            existing.update(values)
            return UpsertResult(entity_id=existing["id"], created=False)

    def deactivate_other_memberships(
        self,
        *,
        person_id: uuid.UUID,
        knesset_number: int,
        keep_membership_id: uuid.UUID,
    ) -> int:
        changed = 0
        with self._lock:
            for row in self.rows["membership"].values():
                if (
                    row["person_id"] == person_id
                    and row["knesset_number"] == knesset_number
                    and row["id"] != keep_membership_id
                    and row["is_current"]
                ):
                    row["is_current"] = False
                    changed += 1
        return changed

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
        with self._lock:
            for row in self.rows["vote"].values():
                if row["id"] == vote_id:
                    row.update(
                        yes_count=yes_count,
                        no_count=no_count,
                        abstain_count=abstain_count,
                        result=result,
                        result_confidence=result_confidence,
                    )

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
        with self._lock:
            self.source_links[f"{entity_kind}-{entity_id}-{external_source}"] = {
                "entity_kind": entity_kind,
                "entity_id": entity_id,
                "label": label,
                "url": url,
                "external_id": external_id,
            }

    def insert_snapshot(self, row: SnapshotRow) -> None:
        if self.fail_snapshots:
            raise RuntimeError("snapshot table unavailable")
        with self._lock:
            self.snapshots.append(row)

    def load_id_map(self, kind: str, external_source: str) -> dict[str, uuid.UUID]:
        assert kind in ID_MAP_MODELS
        return {
            row["external_id"]: row["id"]
            for row in self.rows[kind].values()
            if row["external_source"] == external_source
        }

    def iter_snapshot_payloads(self, kind: str, external_source: str) -> Iterator[dict[str, Any]]:
        for row in list(self.snapshots):
            if row.entity_kind == kind and row.external_source == external_source:
                yield row.payload

    # RunStore

    def create_run(self, *, source: str, started_at: datetime, commit_hash: str | None) -> uuid.UUID:
        run_id = uuid.uuid4()
        self.runs[run_id] = {
            "source": source,
            "status": "running",
            "started_at": started_at,
            "commit_hash": commit_hash,
            "entity_sets_discovered": None,
        }
        return run_id

    def record_discovered(self, run_id: uuid.UUID, names: Sequence[str]) -> None:
        self.runs[run_id]["entity_sets_discovered"] = list(names)

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
        self.finalize_calls += 1
        self.runs[run_id].update(
            status=status,
            completed_at=completed_at,
            counts=counts,
            errors=list(errors),
            error_count=error_count,
            latency_ms=latency_ms,
        )

    # AggregateStore

    def fetch_contributions(self) -> list[ContributionRow]:
        return list(self.contributions)

    def replace_party_topic_aggs(self, rows: Sequence[PartyTopicRow], *, computed_at: datetime) -> int:
        self.party_topic_aggs = list(rows)
        self.aggs_computed_at = computed_at
        return len(rows)

    # Helpers

    def table(self, kind: str) -> list[dict[str, Any]]:
        return list(self.rows[kind].values())


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

FIXED_NOW = datetime(2026, 10, 18, 2, 0, tzinfo=timezone.utc)


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def odata_settings() -> ODataSettings:
    return ODataSettings(
        base_url=BASE_URL,
        metadata_url=METADATA_URL,
        page_size=2,
        request_delay_seconds=0.0,
        timeout_seconds=5.0,
        max_retries=2,
        backoff_initial_seconds=1.0,
        backoff_multiplier=2.0,
    )


@pytest.fixture()
def guard_settings() -> OutboundGuardSettings:
    return OutboundGuardSettings()


@pytest.fixture()
def no_sleep() -> list[float]:
    """Collects requested sleeps instead of sleeping."""
    return []
