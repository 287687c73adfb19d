"""
app/mappers/vote_mapper.py

Plenum vote headers and per-member ballot records to internal entities.

Ballot result codes (KNS_PlenumVoteResult.ResultCode):
    6  present, did not vote
    7  for
    8  against
    9  abstain
    10 absent
    11 voted by show of hands, counted as for
"""

from __future__ import annotations

from typing import Final

from app.domain.entities import (
    BallotPosition,
    EntityKind,
    ResultConfidence,
    VoteEntity,
    VoteOutcome,
    VoteRecordEntity,
    VoteResult,
)
from app.mappers.field_resolution import (
    MappingContext,
    RawRecord,
    parse_int,
    resolve_datetime,
    resolve_identifier,
    resolve_name,
    resolve_text,
)

VOTE_ENTITY_SET_CANDIDATES: tuple[str, ...] = ("KNS_PlenumVote", "PlenumVote")
VOTE_RECORD_ENTITY_SET_CANDIDATES: tuple[str, ...] = ("KNS_PlenumVoteResult", "PlenumVoteResult")

VOTE_SOURCE_ENTITY_SET = "KNS_PlenumVote"

BALLOT_POSITION_BY_CODE: Final[dict[int, str]] = {
    7: BallotPosition.YES,
    11: BallotPosition.YES,
    8: BallotPosition.NO,
    9: BallotPosition.ABSTAIN,
}

PASS_TERMS: Final[tuple[str, ...]] = (
    "להעביר",
    "לאשר",
    "לכלול",
    "לאמץ",
    "להעלות",
    "בעד",
    "אושר",
    "עבר",
)
REJECT_TERMS: Final[tuple[str, ...]] = ("לדחות", "נגד", "נדחה")


def map_ballot_code(code: object) -> str:
    """
    Translate a ballot result code; anything unrecognised is ``did_not_vote``.
    """

    parsed = parse_int(code)
    if parsed is None:
        return BallotPosition.DID_NOT_VOTE
    return BALLOT_POSITION_BY_CODE.get(parsed, BallotPosition.DID_NOT_VOTE)


def derive_vote_outcome(
    for_label: str | None,
    against_label: str | None,
    yes_count: int | None = None,
    no_count: int | None = None,
) -> VoteOutcome:
    """
    Decide whether a vote passed.

    Tallies are authoritative when both are known. Without them, the Hebrew
    label of the "for" option is matched against curated keyword lists; that
    path is approximate and reported with low confidence.
    """

    if yes_count is not None and no_count is not None:
        if yes_count > no_count:
            return VoteOutcome(VoteResult.PASSED, ResultConfidence.HIGH)
        if no_count > yes_count:
            return VoteOutcome(VoteResult.REJECTED, ResultConfidence.HIGH)
        return VoteOutcome(VoteResult.UNKNOWN, ResultConfidence.HIGH)

    for_text = (for_label or "").strip()
    against_text = (against_label or "").strip()
    if not for_text and not against_text:
        return VoteOutcome(VoteResult.UNKNOWN, ResultConfidence.NONE)
    if for_text == against_text:
        return VoteOutcome(VoteResult.UNKNOWN, ResultConfidence.NONE)

    lowered = for_text.lower()
    if any(term in lowered for term in PASS_TERMS):
        return VoteOutcome(VoteResult.PASSED, ResultConfidence.LOW)
    if any(term in lowered for term in REJECT_TERMS):
        return VoteOutcome(VoteResult.REJECTED, ResultConfidence.LOW)
    return VoteOutcome(VoteResult.UNKNOWN, ResultConfidence.NONE)


def map_vote_header(
    raw: RawRecord,
    context: MappingContext,
    *,
    yes_count: int | None = None,
    no_count: int | None = None,
    abstain_count: int | None = None,
) -> VoteEntity:
    external_id = resolve_identifier(raw, ("Id", "VoteID", "ID"), EntityKind.VOTE)
    outcome = derive_vote_outcome(
        resolve_text(raw, ("ForOptionDesc",)),
        resolve_text(raw, ("AgainstOptionDesc",)),
        yes_count,
        no_count,
    )
    return VoteEntity(
        external_id=external_id,
        external_source=context.external_source,
        source_url=context.source_url(VOTE_SOURCE_ENTITY_SET, external_id),
        last_seen_at=context.now(),
        title=resolve_name(raw, ("VoteTitle", "VoteSubject")),
        vote_date=resolve_datetime(raw, ("VoteDateTime", "VoteDate")),
        knesset_number=parse_int(raw.get("KnessetNum")),
        yes_count=yes_count,
        no_count=no_count,
        abstain_count=abstain_count,
        result=outcome.result,
        result_confidence=outcome.confidence,
    )


def map_vote_result_record(raw: RawRecord, context: MappingContext) -> VoteRecordEntity:
    vote_external_id = resolve_identifier(raw, ("VoteID",), EntityKind.VOTE_RECORD)
    person_external_id = resolve_identifier(raw, ("MkId", "PersonID"), EntityKind.VOTE_RECORD)
    return VoteRecordEntity(
        external_id=f"{vote_external_id}:{person_external_id}",
        external_source=context.external_source,
        source_url=None,
        last_seen_at=context.now(),
        vote_external_id=vote_external_id,
        person_external_id=person_external_id,
        position=map_ballot_code(raw.get("ResultCode")),
    )
