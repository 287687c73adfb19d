"""
Repository layer exports.
"""

from db.repositories.entity_repository import EntityRepository, UnknownEntityKindError
from db.repositories.party_topic_repository import ContributionRow, PartyTopicRepository, PartyTopicRow
from db.repositories.snapshot_repository import SnapshotRepository
from db.repositories.sync_run_repository import SyncRunRepository

__all__ = [
    "ContributionRow",
    "EntityRepository",
    "PartyTopicRepository",
    "PartyTopicRow",
    "SnapshotRepository",
    "SyncRunRepository",
    "UnknownEntityKindError",
]
