"""
app/domain package marker.
"""

from app.domain.entities import (
    BallotPosition,
    BillEntity,
    BillRoleEntity,
    BillRoleType,
    BillStageEntity,
    CommitteeEntity,
    CommitteeMembershipEntity,
    EntityKind,
    Gender,
    GovernmentRoleEntity,
    MembershipEntity,
    PartyEntity,
    PersonEntity,
    ResultConfidence,
    SyncedEntity,
    VoteEntity,
    VoteOutcome,
    VoteRecordEntity,
    VoteResult,
)
from app.domain.sync_run import (
    EntityCounters,
    RunStatus,
    SyncRunResult,
    compute_run_status,
)

__all__ = [
    "BallotPosition",
    "BillEntity",
    "BillRoleEntity",
    "BillRoleType",
    "BillStageEntity",
    "CommitteeEntity",
    "CommitteeMembershipEntity",
    "EntityCounters",
    "EntityKind",
    "Gender",
    "GovernmentRoleEntity",
    "MembershipEntity",
    "PartyEntity",
    "PersonEntity",
    "ResultConfidence",
    "RunStatus",
    "SyncRunResult",
    "SyncedEntity",
    "VoteEntity",
    "VoteOutcome",
    "VoteRecordEntity",
    "VoteResult",
    "compute_run_status",
]
