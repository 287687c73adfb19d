"""
app/mappers/person_mapper.py

Member records to person entities, and person-to-faction positions to
party memberships.
"""

from __future__ import annotations

from app.domain.entities import EntityKind, Gender, MembershipEntity, PersonEntity
from app.mappers.field_resolution import (
    UNKNOWN_NAME,
    MappingContext,
    RawRecord,
    optional_identifier,
    parse_int,
    resolve_datetime,
    resolve_identifier,
    resolve_is_current,
    resolve_text,
)

PERSON_ENTITY_SET_CANDIDATES: tuple[str, ...] = (
    "KNS_Person",
    "KnssMember",
    "Person",
    "MK",
    "KnessetMember",
    "Member",
)

MEMBERSHIP_ENTITY_SET_CANDIDATES: tuple[str, ...] = (
    "KNS_PersonToPosition",
    "KnssMemberFaction",
    "MemberFaction",
    "FactionMember",
    "PersonToFaction",
)

PERSON_SOURCE_ENTITY_SET = "KNS_Person"
MEMBERSHIP_SOURCE_ENTITY_SET = "KNS_PersonToPosition"

# Only positions that carry a faction are party memberships.
MEMBERSHIP_FILTER = "FactionID ne null"

PERSON_ID_FIELDS = ("PersonID", "MemberID", "ID", "Id")
_MEMBER_REF_FIELDS = ("PersonID", "MemberID", "MkId")
_END_DATE_FIELDS = ("EndDate", "FinishDate")


def infer_gender(raw: RawRecord) -> str:
    gender_id = parse_int(raw.get("GenderID"))
    gender_desc = str(raw.get("GenderDesc") or "")
    if gender_id == 1 or "זכר" in gender_desc:
        return Gender.MALE
    if gender_id == 2 or "נקבה" in gender_desc:
        return Gender.FEMALE
    return Gender.UNKNOWN


def map_member_to_person(raw: RawRecord, context: MappingContext) -> PersonEntity:
    external_id = resolve_identifier(raw, PERSON_ID_FIELDS, EntityKind.PERSON)
    first_name = resolve_text(raw, ("FirstName",))
    last_name = resolve_text(raw, ("LastName",))
    full_name = resolve_text(raw, ("FullName",)) or " ".join(
        part for part in (first_name, last_name) if part
    )
    return PersonEntity(
        external_id=external_id,
        external_source=context.external_source,
        source_url=context.source_url(PERSON_SOURCE_ENTITY_SET, external_id),
        last_seen_at=context.now(),
        name=full_name or UNKNOWN_NAME,
        first_name=first_name,
        last_name=last_name,
        gender=infer_gender(raw),
        is_current=resolve_is_current(raw, ("IsCurrent", "IsActive")),
    )


def map_member_faction_to_membership(raw: RawRecord, context: MappingContext) -> MembershipEntity:
    """
    Map one person-to-faction position.

    Raises:
        MissingIdentifierError: When the person or faction reference is absent.
    """

    person_external_id = resolve_identifier(raw, _MEMBER_REF_FIELDS, EntityKind.MEMBERSHIP)
    party_external_id = resolve_identifier(raw, ("FactionID",), EntityKind.MEMBERSHIP)
    knesset_number = parse_int(raw.get("KnessetNum"))
    if knesset_number is None:
        knesset_number = -1

    position_id = optional_identifier(raw, ("PersonToPositionID", "ID", "Id"))
    external_id = position_id or f"{person_external_id}:{party_external_id}:{knesset_number}"
    return MembershipEntity(
        external_id=external_id,
        external_source=context.external_source,
        source_url=(
            context.source_url(MEMBERSHIP_SOURCE_ENTITY_SET, position_id) if position_id else None
        ),
        last_seen_at=context.now(),
        person_external_id=person_external_id,
        party_external_id=party_external_id,
        knesset_number=knesset_number,
        start_date=resolve_datetime(raw, ("StartDate",)),
        end_date=resolve_datetime(raw, _END_DATE_FIELDS),
        is_current=resolve_is_current(raw, ("IsCurrent",), _END_DATE_FIELDS),
    )
