"""
app/scoring package marker.
"""

from app.scoring.party_topic_scoring import (
    BillContribution,
    PartyTopicScore,
    accumulate_party_topic_scores,
    normalize_party_scores,
    points_for_stage,
    role_multiplier,
)

__all__ = [
    "BillContribution",
    "PartyTopicScore",
    "accumulate_party_topic_scores",
    "normalize_party_scores",
    "points_for_stage",
    "role_multiplier",
]
