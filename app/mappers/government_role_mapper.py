"""
app/mappers/government_role_mapper.py

Ministerial person-to-position records to government role entities.
"""

from __future__ import annotations

from typing import Final

from app.domain.entities import EntityKind, GovernmentRoleEntity
from app.mappers.field_resolution import (
    MappingContext,
    RawRecord,
    optional_identifier,
    parse_int,
    resolve_datetime,
    resolve_identifier,
    resolve_is_current,
    resolve_text,
)

GOVERNMENT_ROLE_ENTITY_SET_CANDIDATES: tuple[str, ...] = (
    "KNS_PersonToPosition",
    "PersonToPosition",
)

GOVERNMENT_ROLE_SOURCE_ENTITY_SET = "KNS_PersonToPosition"

MINISTER_POSITION_IDS: Final[tuple[int, ...]] = (39, 57, 45, 31, 50, 40, 59, 51, 285079)

MINISTER_POSITION_LABELS: Final[dict[int, str]] = {
    39: "שר",
    57: "שרה",
    45: "ראש הממשלה",
    31: "משנה לראש הממשלה",
    50: "סגן ראש הממשלה",
    40: "סגן שר",
    59: "סגנית שר",
    51: 'מ"מ ראש הממשלה',
    285079: "סגן שרה",
}


def position_filter(position_id: int) -> str:
    return f"PositionID eq {position_id}"


def position_label(position_id: int | None) -> str:
    """
    Human-readable label for a position id; unknown ids get a templated
    "position <id>" label.
    """

    if position_id is not None and position_id in MINISTER_POSITION_LABELS:
        return MINISTER_POSITION_LABELS[position_id]
    return f"תפקיד {position_id if position_id is not None else '?'}"


def map_person_to_position_to_government_role(
    raw: RawRecord,
    context: MappingContext,
) -> GovernmentRoleEntity:
    external_id = resolve_identifier(raw, ("PersonToPositionID", "Id", "ID"), EntityKind.GOVERNMENT_ROLE)
    person_external_id = resolve_identifier(raw, ("PersonID", "MemberID"), EntityKind.GOVERNMENT_ROLE)
    position_id = parse_int(raw.get("PositionID"))
    return GovernmentRoleEntity(
        external_id=external_id,
        external_source=context.external_source,
        source_url=context.source_url(GOVERNMENT_ROLE_SOURCE_ENTITY_SET, external_id),
        last_seen_at=context.now(),
        person_external_id=person_external_id,
        position_id=position_id,
        position_label=position_label(position_id),
        ministry_id=optional_identifier(raw, ("GovMinistryID",)),
        ministry_name=resolve_text(raw, ("GovMinistryName",)),
        duty_description=resolve_text(raw, ("DutyDesc",)),
        government_number=parse_int(raw.get("GovernmentNum")),
        knesset_number=parse_int(raw.get("KnessetNum")),
        start_date=resolve_datetime(raw, ("StartDate",)),
        end_date=resolve_datetime(raw, ("FinishDate", "EndDate")),
        is_current=resolve_is_current(raw, ("IsCurrent",), ("FinishDate", "EndDate")),
    )
