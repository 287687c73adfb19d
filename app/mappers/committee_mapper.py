"""
app/mappers/committee_mapper.py

Committee and committee-member records to internal entities.
"""

from __future__ import annotations

from app.domain.entities import CommitteeEntity, CommitteeMembershipEntity, EntityKind
from app.mappers.field_resolution import (
    MappingContext,
    RawRecord,
    optional_identifier,
    parse_int,
    resolve_datetime,
    resolve_identifier,
    resolve_is_current,
    resolve_name,
    resolve_text,
)

COMMITTEE_ENTITY_SET_CANDIDATES: tuple[str, ...] = (
    "KNS_Committee",
    "KnssCommittee",
    "Committee",
    "KnessetCommittee",
)

COMMITTEE_MEMBER_ENTITY_SET_CANDIDATES: tuple[str, ...] = (
    "KNS_PersonToPosition",
    "KNS_PersonToCommittee",
    "KnssCommitteeMember",
    "CommitteeMember",
    "PersonCommittee",
)

COMMITTEE_SOURCE_ENTITY_SET = "KNS_Committee"

# The generic position collection mixes every role; keep committee rows only.
COMMITTEE_MEMBER_FILTER = "CommitteeID ne null"

_END_DATE_FIELDS = ("EndDate", "FinishDate")


def map_committee(raw: RawRecord, context: MappingContext) -> CommitteeEntity:
    external_id = resolve_identifier(raw, ("CommitteeID", "ID", "Id"), EntityKind.COMMITTEE)
    return CommitteeEntity(
        external_id=external_id,
        external_source=context.external_source,
        source_url=context.source_url(COMMITTEE_SOURCE_ENTITY_SET, external_id),
        last_seen_at=context.now(),
        name=resolve_name(raw, ("Name", "CommitteeName")),
        knesset_number=parse_int(raw.get("KnessetNum")),
        is_current=resolve_is_current(raw, ("IsCurrent",), ("FinishDate",)),
    )


def map_committee_member(raw: RawRecord, context: MappingContext) -> CommitteeMembershipEntity:
    committee_external_id = resolve_identifier(
        raw, ("CommitteeID",), EntityKind.COMMITTEE_MEMBERSHIP
    )
    person_external_id = resolve_identifier(
        raw, ("PersonID", "MemberID"), EntityKind.COMMITTEE_MEMBERSHIP
    )
    position_id = optional_identifier(raw, ("PersonToPositionID", "ID", "Id"))
    return CommitteeMembershipEntity(
        external_id=position_id or f"{person_external_id}:{committee_external_id}",
        external_source=context.external_source,
        source_url=None,
        last_seen_at=context.now(),
        person_external_id=person_external_id,
        committee_external_id=committee_external_id,
        role=resolve_text(raw, ("RoleDesc", "DutyDesc")),
        start_date=resolve_datetime(raw, ("StartDate",)),
        end_date=resolve_datetime(raw, _END_DATE_FIELDS),
        is_current=resolve_is_current(raw, ("IsCurrent",), _END_DATE_FIELDS),
    )
