"""
tests/test_sync_primitives.py

Unit tests for the run tracker, snapshot service, and id maps.

Coverage
--------
- Tracker counters, single finalization, state errors
- Error message cap with a full error count
- Discovered entity sets persisted before completion
- Concurrent increments
- Snapshot hash, size, and canonical payload
- Snapshot failures swallowed
- Id map freezing
"""

from __future__ import annotations

import threading
import uuid

import pytest

from app.domain.sync_run import RunStatus
from app.sync.id_map import FrozenIdMapError, IdMap
from app.sync.run_tracker import RunTracker, RunTrackerStateError
from app.sync.snapshot import SnapshotService, hash_payload, serialize_payload
from conftest import FIXED_NOW, InMemoryStore


def _tracker(store: InMemoryStore, **kwargs: object) -> RunTracker:
    ticks = iter([10.0, 12.5])
    return RunTracker(
        store,
        clock=lambda: FIXED_NOW,
        monotonic=lambda: next(ticks),
        **kwargs,  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# RunTracker
# ---------------------------------------------------------------------------


class TestRunTracker:
    def test_counters_are_persisted_once_on_complete(self, store: InMemoryStore) -> None:
        tracker = _tracker(store)
        run_id = tracker.start("knesset_odata", commit_hash="abc123")
        tracker.init_entity("bill")
        tracker.increment("party", "fetched", 3)
        tracker.increment("party", "created", 2)
        tracker.increment("party", "failed")

        result = tracker.complete(RunStatus.PARTIAL)

        assert store.finalize_calls == 1
        row = store.runs[run_id]
        assert row["status"] == RunStatus.PARTIAL
        assert row["commit_hash"] == "abc123"
        assert row["latency_ms"] == 2500
        assert row["counts"]["party"] == {"fetched": 3, "created": 2, "updated": 0, "skipped": 0, "failed": 1}
        assert row["counts"]["bill"]["fetched"] == 0
        assert result.total_fetched == 3
        assert result.run_id == run_id

    def test_run_row_stays_running_until_complete(self, store: InMemoryStore) -> None:
        tracker = _tracker(store)
        run_id = tracker.start("knesset_odata")
        tracker.increment("party", "fetched")

        assert store.runs[run_id]["status"] == "running"
        assert store.finalize_calls == 0

    def test_discovered_names_written_immediately(self, store: InMemoryStore) -> None:
        tracker = _tracker(store)
        run_id = tracker.start("knesset_odata")

        tracker.record_discovered(["KNS_Faction", "KNS_Bill"])

        assert store.runs[run_id]["entity_sets_discovered"] == ["KNS_Faction", "KNS_Bill"]

    def test_error_messages_capped_but_counted(self, store: InMemoryStore) -> None:
        tracker = _tracker(store, max_error_messages=2)
        tracker.start("knesset_odata")
        for index in range(5):
            tracker.add_error(f"error {index}")

        result = tracker.complete(RunStatus.PARTIAL)

        assert result.errors == ["error 0", "error 1"]
        assert result.error_count == 5

    def test_second_complete_is_rejected(self, store: InMemoryStore) -> None:
        tracker = _tracker(store)
        tracker.start("knesset_odata")
        tracker.complete(RunStatus.COMPLETED)

        with pytest.raises(RunTrackerStateError):
            tracker.complete(RunStatus.FAILED)
        assert store.finalize_calls == 1

    def test_non_terminal_status_is_rejected(self, store: InMemoryStore) -> None:
        tracker = _tracker(store)
        tracker.start("knesset_odata")

        with pytest.raises(ValueError):
            tracker.complete(RunStatus.RUNNING)

    def test_complete_before_start_is_rejected(self, store: InMemoryStore) -> None:
        with pytest.raises(RunTrackerStateError):
            _tracker(store).complete(RunStatus.COMPLETED)

    def test_unknown_counter_field_is_rejected(self, store: InMemoryStore) -> None:
        tracker = _tracker(store)
        tracker.start("knesset_odata")

        with pytest.raises(ValueError):
            tracker.increment("party", "deleted")

    def test_concurrent_increments_are_not_lost(self, store: InMemoryStore) -> None:
        tracker = _tracker(store)
        tracker.start("knesset_odata")

        def work() -> None:
            for _ in range(500):
                tracker.increment("person", "fetched")

        threads = [threading.Thread(target=work) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert tracker.kind_counts("person")["fetched"] == 2000
        assert tracker.total_fetched == 2000


# ---------------------------------------------------------------------------
# SnapshotService
# ---------------------------------------------------------------------------


class TestSnapshotService:
    def test_snapshot_carries_hash_and_size(self, store: InMemoryStore) -> None:
        service = SnapshotService(store, external_source="knesset_odata", clock=lambda: FIXED_NOW)
        run_id = uuid.uuid4()
        entity_id = uuid.uuid4()
        payload = {"Name": "הליכוד", "FactionID": 1096}

        service.save("party", entity_id, "1096", run_id, payload)

        assert len(store.snapshots) == 1
        row = store.snapshots[0]
        serialized = serialize_payload(payload)
        assert row.payload == payload
        assert row.payload_hash == hash_payload(serialized)
        assert row.payload_size == len(serialized.encode("utf-8"))
        assert row.entity_id == entity_id
        assert row.sync_run_id == run_id
        assert row.fetched_at == FIXED_NOW

    def test_hash_ignores_key_order(self) -> None:
        first = hash_payload(serialize_payload({"a": 1, "b": 2}))
        second = hash_payload(serialize_payload({"b": 2, "a": 1}))

        assert first == second
        assert len(first) == 64

    def test_non_json_values_are_stringified(self) -> None:
        assert serialize_payload({"when": FIXED_NOW}) == '{"when":"2026-10-18 02:00:00+00:00"}'

    def test_store_failure_is_swallowed(self, store: InMemoryStore) -> None:
        store.fail_snapshots = True
        service = SnapshotService(store, external_source="knesset_odata")

        service.save("party", None, "1", None, {"Id": 1})

        assert store.snapshots == []


# ---------------------------------------------------------------------------
# IdMap
# ---------------------------------------------------------------------------


class TestIdMap:
    def test_set_and_get(self) -> None:
        id_map = IdMap("party")
        entity_id = uuid.uuid4()

        id_map.set("1096", entity_id)

        assert id_map.get("1096") == entity_id
        assert id_map.get("missing") is None
        assert id_map.get(None) is None
        assert "1096" in id_map
        assert len(id_map) == 1

    def test_frozen_map_rejects_writes(self) -> None:
        id_map = IdMap("party", {"1": uuid.uuid4()})
        id_map.freeze()

        assert id_map.frozen
        with pytest.raises(FrozenIdMapError):
            id_map.set("2", uuid.uuid4())
        assert len(id_map) == 1
