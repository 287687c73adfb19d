"""
app/sync package marker.
"""

from app.sync.id_map import FrozenIdMapError, IdMap
from app.sync.run_tracker import RunTracker, RunTrackerStateError
from app.sync.snapshot import SnapshotService, hash_payload, serialize_payload
from app.sync.stage import RecordOutcome, StageReport, StageRunner, StageSpec
from app.sync.stages import SyncStages, entity_values

__all__ = [
    "FrozenIdMapError",
    "IdMap",
    "RunTracker",
    "RunTrackerStateError",
    "SnapshotService",
    "hash_payload",
    "serialize_payload",
    "RecordOutcome",
    "StageReport",
    "StageRunner",
    "StageSpec",
    "SyncStages",
    "entity_values",
]
