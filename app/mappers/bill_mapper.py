"""
app/mappers/bill_mapper.py

Bill, bill initiator, and bill history records to internal entities,
including lifecycle-stage and topic classification.
"""

from __future__ import annotations

from typing import Final

from app.domain.entities import (
    BillEntity,
    BillRoleEntity,
    BillRoleType,
    BillStageEntity,
    EntityKind,
)
from app.mappers.field_resolution import (
    MappingContext,
    RawRecord,
    optional_identifier,
    parse_bool,
    parse_int,
    resolve_datetime,
    resolve_identifier,
    resolve_name,
    resolve_text,
)

BILL_ENTITY_SET_CANDIDATES: tuple[str, ...] = (
    "KNS_Bill",
    "KnssBill",
    "Bill",
    "PrivateBill",
    "GovernmentBill",
    "LawBill",
)

BILL_INITIATOR_ENTITY_SET_CANDIDATES: tuple[str, ...] = (
    "KNS_BillInitiator",
    "KnssBillInitiator",
    "BillInitiator",
    "BillMember",
    "BillSponsor",
)

BILL_STAGE_ENTITY_SET_CANDIDATES: tuple[str, ...] = (
    "KNS_BillHistory",
    "KnssBillHistoryByStage",
    "BillStage",
    "BillHistory",
    "LawHistory",
)

BILL_SOURCE_ENTITY_SET = "KNS_Bill"
BILL_INITIATOR_SOURCE_ENTITY_SET = "KNS_BillInitiator"

UNKNOWN_STATUS: Final[str] = "unknown"
OTHER_TOPIC: Final[str] = "other"

# Status ids of bill statuses (KNS_Status, bill type).
STATUS_BY_ID: Final[dict[int, str]] = {
    101: "first_reading",
    104: "submitted",
    106: "committee_review",
    108: "first_reading",
    109: "first_reading",
    110: "rejected",
    111: "first_reading",
    113: "second_reading",
    114: "second_reading",
    115: "third_reading",
    117: "third_reading",
    118: "passed",
    120: "committee_review",
    122: "withdrawn",
    124: "withdrawn",
    130: "second_reading",
    131: "third_reading",
    140: "withdrawn",
    141: "first_reading",
    142: "committee_review",
    143: "withdrawn",
    150: "submitted",
    158: "committee_review",
    161: "committee_review",
    162: "committee_review",
    165: "committee_review",
    167: "first_reading",
    175: "committee_review",
    176: "rejected",
    177: "withdrawn",
    178: "second_reading",
    179: "second_reading",
    181: "committee_review",
}

# Checked in order; the first matching keyword group wins.
STATUS_KEYWORDS: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    (("התקבלה",), "passed"),
    (("נדחה", "לא עבר"), "rejected"),
    (("נעצרה", "מוזגה", "הוסבה"), "withdrawn"),
    (("קריאה שלישית",), "third_reading"),
    (("קריאה שנייה",), "second_reading"),
    (("קריאה ראשונה",), "first_reading"),
    (("ועדה",), "committee_review"),
    (("הונחה", "הוגשה"), "submitted"),
)

TOPIC_KEYWORDS: Final[dict[str, tuple[str, ...]]] = {
    "economy": ("כלכלה", "מס", "תקציב", "אוצר", "מיסוי", "פיננסי", "בנק"),
    "security_defense": ("ביטחון", "צבא", "הגנה", "מיליטרי", "ביטחון לאומי", "חרדים", "שירות לאומי", "גיוס"),
    "social_welfare": ("רווחה", "סיוע", "קצבה", "עוני", "שוויון חברתי"),
    "healthcare": ("בריאות", "רפואה", "בית חולים", "תרופה", "רופא"),
    "education": ("חינוך", "בית ספר", "אוניברסיטה", "תלמיד", "מורה"),
    "environment": ("סביבה", "אקלים", "זיהום", "אנרגיה", "טבע"),
    "justice_law": ("משפט", "עונשין", "פלילי", "אזרחי", "שופט", "בית משפט"),
    "foreign_affairs": ("חוץ", "דיפלומטי", "בינלאומי", "אמנה", "שגריר"),
    "housing": ("דיור", "שכירות", "דירה", "נדל", "בנייה"),
    "infrastructure": ("תשתית", "כביש", "רכבת", "תחבורה", "חשמל"),
    "religion_state": ("דת", "מדינה", "הלכה", "כשרות", "שבת", "דתי", "שירות לאומי", "גיוס חרדים"),
    "immigration": ("עלייה", "הגירה", "פליט", "אזרחות"),
    "civil_rights": ("זכויות", "אזרחי", "חופש", "ביטוי", "שוויון"),
    "local_government": ("עירייה", "מועצה", "מקומי", "רשות"),
}

SCORING_TOPICS: Final[tuple[str, ...]] = tuple(TOPIC_KEYWORDS)

_BILL_ID_FIELDS = ("BillID", "ID", "Id")


def map_status(status_id: int | None, status_desc: str | None) -> str:
    """
    Resolve a bill lifecycle stage from its status id, falling back to
    keyword matching on the Hebrew status description.
    """

    if status_id is not None and status_id in STATUS_BY_ID:
        return STATUS_BY_ID[status_id]
    if status_desc:
        for keywords, stage in STATUS_KEYWORDS:
            if any(keyword in status_desc for keyword in keywords):
                return stage
    return UNKNOWN_STATUS


def infer_topic(title: str | None, description: str | None) -> str | None:
    """
    Tag a bill with the first topic whose keyword occurs in its text.

    Returns None when there is no text at all, and ``"other"`` when no
    keyword matches.
    """

    text = f"{title or ''} {description or ''}".lower()
    if not text.strip():
        return None
    for topic, keywords in TOPIC_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return topic
    return OTHER_TOPIC


def map_bill(raw: RawRecord, context: MappingContext) -> BillEntity:
    external_id = resolve_identifier(raw, _BILL_ID_FIELDS, EntityKind.BILL)
    title = resolve_name(raw, ("Name", "Title", "BillName"))
    description = resolve_text(raw, ("SummaryLaw",))
    last_updated = resolve_datetime(raw, ("LastUpdatedDate",))
    return BillEntity(
        external_id=external_id,
        external_source=context.external_source,
        source_url=context.source_url(BILL_SOURCE_ENTITY_SET, external_id),
        last_seen_at=context.now(),
        title=title,
        description=description,
        status=map_status(
            parse_int(raw.get("StatusID")),
            resolve_text(raw, ("StatusDesc", "SubTypeDesc")),
        ),
        topic=infer_topic(title, description),
        knesset_number=parse_int(raw.get("KnessetNum")),
        submitted_date=resolve_datetime(raw, ("SubmitDate", "PublicationDate")),
        last_status_date=last_updated,
        last_changed_at=last_updated,
    )


def map_bill_initiator(raw: RawRecord, context: MappingContext) -> BillRoleEntity:
    bill_external_id = resolve_identifier(raw, ("BillID",), EntityKind.BILL_ROLE)
    person_external_id = resolve_identifier(raw, ("PersonID", "MemberID"), EntityKind.BILL_ROLE)
    role = BillRoleType.INITIATOR if parse_bool(raw.get("IsInitiator")) else BillRoleType.COSPONSOR
    initiator_id = optional_identifier(raw, ("BillInitiatorID", "ID", "Id"))
    return BillRoleEntity(
        external_id=initiator_id or f"{bill_external_id}:{person_external_id}:{role}",
        external_source=context.external_source,
        source_url=(
            context.source_url(BILL_INITIATOR_SOURCE_ENTITY_SET, initiator_id)
            if initiator_id
            else None
        ),
        last_seen_at=context.now(),
        person_external_id=person_external_id,
        bill_external_id=bill_external_id,
        role=role,
    )


def map_bill_stage(raw: RawRecord, context: MappingContext) -> BillStageEntity:
    external_id = resolve_identifier(
        raw, ("BillHistoryInitiatorID", "BillHistoryID", "ID", "Id"), EntityKind.BILL_STAGE
    )
    bill_external_id = resolve_identifier(raw, ("BillID",), EntityKind.BILL_STAGE)
    return BillStageEntity(
        external_id=external_id,
        external_source=context.external_source,
        source_url=None,
        last_seen_at=context.now(),
        bill_external_id=bill_external_id,
        stage_name=resolve_text(raw, ("StageName", "StageDesc")),
        status=resolve_text(raw, ("StatusDesc", "ReasonDesc")),
        stage_date=resolve_datetime(raw, ("StageDate", "StartDate")),
    )
