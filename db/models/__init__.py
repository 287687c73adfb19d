"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.bill import Bill, BillRole, BillStage
from db.models.committee import Committee, CommitteeMembership
from db.models.party import Party, PartyMembership
from db.models.party_topic_agg import PartyTopicAgg
from db.models.person import GovernmentRole, Person
from db.models.raw_snapshot import RawSnapshot, SourceLink
from db.models.sync_run import SyncRun
from db.models.vote import Vote, VoteRecord

__all__ = [
    "Bill",
    "BillRole",
    "BillStage",
    "Committee",
    "CommitteeMembership",
    "GovernmentRole",
    "Party",
    "PartyMembership",
    "PartyTopicAgg",
    "Person",
    "RawSnapshot",
    "SourceLink",
    "SyncRun",
    "Vote",
    "VoteRecord",
]
