"""
app/repositories package marker.
"""

from app.repositories.sync_store import (
    AggregateStore,
    RunStore,
    SnapshotRow,
    SqlAlchemySyncStore,
    SyncStore,
    UpsertResult,
)

__all__ = [
    "AggregateStore",
    "RunStore",
    "SnapshotRow",
    "SqlAlchemySyncStore",
    "SyncStore",
    "UpsertResult",
]
