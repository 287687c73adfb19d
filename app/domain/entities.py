"""
app/domain/entities.py

Typed internal entities produced by the entity mappers.

Relationship entities carry the external ids of the rows they point to; the
sync stages translate those into internal ids through the run's id maps.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar


class EntityKind:
    PARTY = "party"
    PERSON = "person"
    MEMBERSHIP = "membership"
    BILL = "bill"
    BILL_ROLE = "bill_role"
    BILL_STAGE = "bill_stage"
    COMMITTEE = "committee"
    COMMITTEE_MEMBERSHIP = "committee_membership"
    GOVERNMENT_ROLE = "government_role"
    VOTE = "vote"
    VOTE_RECORD = "vote_record"


class Gender:
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


class BillRoleType:
    INITIATOR = "initiator"
    COSPONSOR = "cosponsor"


class BallotPosition:
    YES = "yes"
    NO = "no"
    ABSTAIN = "abstain"
    DID_NOT_VOTE = "did_not_vote"


class VoteResult:
    PASSED = "passed"
    REJECTED = "rejected"
    UNKNOWN = "unknown"


class ResultConfidence:
    HIGH = "high"
    LOW = "low"
    NONE = "none"


@dataclass(frozen=True, kw_only=True)
class SyncedEntity:
    """
    Provenance fields shared by every synced entity.
    """

    kind: ClassVar[str] = ""

    external_id: str
    external_source: str
    source_url: str | None
    last_seen_at: datetime


@dataclass(frozen=True, kw_only=True)
class PartyEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.PARTY

    name: str
    abbreviation: str | None = None
    knesset_number: int | None = None
    seat_count: int | None = None
    is_current: bool = False
    last_changed_at: datetime | None = None


@dataclass(frozen=True, kw_only=True)
class PersonEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.PERSON

    name: str
    first_name: str | None = None
    last_name: str | None = None
    gender: str = Gender.UNKNOWN
    is_current: bool = False


@dataclass(frozen=True, kw_only=True)
class MembershipEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.MEMBERSHIP

    person_external_id: str
    party_external_id: str
    knesset_number: int = -1
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_current: bool = False


@dataclass(frozen=True, kw_only=True)
class BillEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.BILL

    title: str
    description: str | None = None
    status: str = "unknown"
    topic: str | None = None
    knesset_number: int | None = None
    submitted_date: datetime | None = None
    last_status_date: datetime | None = None
    last_changed_at: datetime | None = None


@dataclass(frozen=True, kw_only=True)
class BillRoleEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.BILL_ROLE

    person_external_id: str
    bill_external_id: str
    role: str = BillRoleType.INITIATOR


@dataclass(frozen=True, kw_only=True)
class BillStageEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.BILL_STAGE

    bill_external_id: str
    stage_name: str | None = None
    status: str | None = None
    stage_date: datetime | None = None


@dataclass(frozen=True, kw_only=True)
class CommitteeEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.COMMITTEE

    name: str
    knesset_number: int | None = None
    is_current: bool = False


@dataclass(frozen=True, kw_only=True)
class CommitteeMembershipEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.COMMITTEE_MEMBERSHIP

    person_external_id: str
    committee_external_id: str
    role: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_current: bool = False


@dataclass(frozen=True, kw_only=True)
class GovernmentRoleEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.GOVERNMENT_ROLE

    person_external_id: str
    position_id: int | None
    position_label: str
    ministry_id: str | None = None
    ministry_name: str | None = None
    duty_description: str | None = None
    government_number: int | None = None
    knesset_number: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_current: bool = False


@dataclass(frozen=True)
class VoteOutcome:
    result: str
    confidence: str


@dataclass(frozen=True, kw_only=True)
class VoteEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.VOTE

    title: str
    vote_date: datetime | None = None
    knesset_number: int | None = None
    yes_count: int | None = None
    no_count: int | None = None
    abstain_count: int | None = None
    result: str = VoteResult.UNKNOWN
    result_confidence: str = ResultConfidence.NONE


@dataclass(frozen=True, kw_only=True)
class VoteRecordEntity(SyncedEntity):
    kind: ClassVar[str] = EntityKind.VOTE_RECORD

    vote_external_id: str
    person_external_id: str
    position: str = BallotPosition.DID_NOT_VOTE
