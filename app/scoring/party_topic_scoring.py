"""
app/scoring/party_topic_scoring.py

Pure scoring functions for per-party, per-topic legislative activity.

    raw(party, topic) = sum(points_for_stage(bill.status) * role_multiplier(role))

over every bill a current member of the party initiated or cosponsored.
Raw scores are then min-max normalized per topic across parties.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Final

STAGE_POINTS: Final[dict[str, int]] = {
    "passed": 5,
    "second_reading": 3,
    "third_reading": 3,
    "committee_review": 2,
    "first_reading": 2,
    "submitted": 1,
}

ROLE_MULTIPLIERS: Final[dict[str, float]] = {
    "initiator": 1.0,
    "cosponsor": 0.5,
}


@dataclass(frozen=True)
class BillContribution:
    """
    One (party, bill, role) fact feeding the aggregate.
    """

    party_id: str
    topic: str
    bill_id: str
    status: str
    role: str


@dataclass(frozen=True)
class PartyTopicScore:
    party_id: str
    topic: str
    raw_score: float
    bill_count: int


def points_for_stage(stage_label: str | None) -> int:
    """Return the point value of a bill lifecycle stage.

    Args:
        stage_label: Stage label such as ``"passed"`` or ``"first_reading"``.

    Returns:
        The stage's points, or 0 for rejected, draft, withdrawn, expired and
        unrecognised labels.
    """
    if stage_label is None:
        return 0
    return STAGE_POINTS.get(stage_label, 0)


def role_multiplier(points: float, role: str | None) -> float:
    """Weight a bill's points by the member's role on it.

    Args:
        points: Stage points of the bill.
        role: ``"initiator"`` keeps the points, ``"cosponsor"`` halves them,
            anything else contributes nothing.

    Returns:
        The weighted contribution.
    """
    if role is None:
        return 0.0
    return points * ROLE_MULTIPLIERS.get(role, 0.0)


def accumulate_party_topic_scores(
    contributions: Iterable[BillContribution],
) -> list[PartyTopicScore]:
    """Sum weighted contributions per (party, topic).

    Distinct bills are counted per (party, topic). Pairs whose total is not
    positive are dropped.

    Args:
        contributions: Role-tagged bill facts for current party members.

    Returns:
        Scores sorted by party then topic.
    """
    totals: dict[tuple[str, str], float] = {}
    bills: dict[tuple[str, str], set[str]] = {}
    for item in contributions:
        key = (item.party_id, item.topic)
        totals[key] = totals.get(key, 0.0) + role_multiplier(points_for_stage(item.status), item.role)
        bills.setdefault(key, set()).add(item.bill_id)

    return [
        PartyTopicScore(party_id=party_id, topic=topic, raw_score=total, bill_count=len(bills[(party_id, topic)]))
        for (party_id, topic), total in sorted(totals.items())
        if total > 0
    ]


def normalize_party_scores(
    rows: Iterable[PartyTopicScore],
    topic_keys: Sequence[str],
) -> dict[str, dict[str, float]]:
    """Min-max normalize raw scores per topic across parties.

    Args:
        rows: Raw per-(party, topic) scores.
        topic_keys: Allowed topics. Rows for other topics are dropped.

    Returns:
        ``{party_id: {topic: score}}`` with scores in [0, 1]. When every
        party shares the same raw score for a topic, the score is 0 if that
        value is 0 and 1 otherwise.
    """
    allowed = set(topic_keys)
    by_topic: dict[str, list[PartyTopicScore]] = {}
    for row in rows:
        if row.topic not in allowed:
            continue
        by_topic.setdefault(row.topic, []).append(row)

    result: dict[str, dict[str, float]] = {}
    for topic, topic_rows in by_topic.items():
        scores = [row.raw_score for row in topic_rows]
        high = max(scores)
        low = min(scores)
        for row in topic_rows:
            if high == low:
                normalized = 0.0 if high == 0 else 1.0
            else:
                normalized = (row.raw_score - low) / (high - low)
            result.setdefault(row.party_id, {})[topic] = normalized
    return result


def normalized_lookup(
    normalized: Mapping[str, Mapping[str, float]],
    party_id: str,
    topic: str,
) -> float:
    return normalized.get(party_id, {}).get(topic, 0.0)
