"""
app/schemas package marker.
"""

from app.schemas.sync_run import (
    AggregateReport,
    BackfillReport,
    EntityCountsResponse,
    SyncRunReport,
)

__all__ = [
    "AggregateReport",
    "BackfillReport",
    "EntityCountsResponse",
    "SyncRunReport",
]
