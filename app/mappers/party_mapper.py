"""
app/mappers/party_mapper.py

Faction records to party entities.
"""

from __future__ import annotations

from app.domain.entities import EntityKind, PartyEntity
from app.mappers.field_resolution import (
    MappingContext,
    RawRecord,
    parse_int,
    resolve_datetime,
    resolve_identifier,
    resolve_is_current,
    resolve_name,
    resolve_text,
)

FACTION_ENTITY_SET_CANDIDATES: tuple[str, ...] = (
    "KNS_Faction",
    "KnssFaction",
    "Faction",
    "FactionMember",
    "ParliamentFaction",
)

FACTION_SOURCE_ENTITY_SET = "KNS_Faction"

_ID_FIELDS = ("FactionID", "ID", "Id")
_NAME_FIELDS = ("FactionName", "Name")


def map_faction_to_party(raw: RawRecord, context: MappingContext) -> PartyEntity:
    external_id = resolve_identifier(raw, _ID_FIELDS, EntityKind.PARTY)
    return PartyEntity(
        external_id=external_id,
        external_source=context.external_source,
        source_url=context.source_url(FACTION_SOURCE_ENTITY_SET, external_id),
        last_seen_at=context.now(),
        name=resolve_name(raw, _NAME_FIELDS),
        abbreviation=resolve_text(raw, ("ShortName", "Abbreviation")),
        knesset_number=parse_int(raw.get("KnessetNum")),
        seat_count=parse_int(raw.get("CountOfMembers")),
        is_current=resolve_is_current(raw, ("IsCurrent", "IsActive"), ("FinishDate", "EndDate")),
        last_changed_at=resolve_datetime(raw, ("LastUpdatedDate", "StartDate")),
    )
