"""
tests/test_party_topic_scoring.py

Unit tests for party/topic scoring.

Coverage
--------
- Stage points and unknown stages
- Role weighting
- Accumulation per (party, topic) with distinct bill counts
- Non-positive totals dropped
- Min-max normalization, equal scores, topic filtering
"""

from __future__ import annotations

import unittest

from app.scoring.party_topic_scoring import (
    BillContribution,
    PartyTopicScore,
    accumulate_party_topic_scores,
    normalize_party_scores,
    normalized_lookup,
    points_for_stage,
    role_multiplier,
)


def _contribution(party: str, bill: str, status: str, role: str, topic: str = "economy") -> BillContribution:
    return BillContribution(party_id=party, topic=topic, bill_id=bill, status=status, role=role)


class TestPoints(unittest.TestCase):
    def test_stage_points(self) -> None:
        self.assertEqual(points_for_stage("passed"), 5)
        self.assertEqual(points_for_stage("third_reading"), 3)
        self.assertEqual(points_for_stage("first_reading"), 2)
        self.assertEqual(points_for_stage("submitted"), 1)

    def test_non_scoring_stages(self) -> None:
        self.assertEqual(points_for_stage("rejected"), 0)
        self.assertEqual(points_for_stage("withdrawn"), 0)
        self.assertEqual(points_for_stage(None), 0)

    def test_role_weighting(self) -> None:
        self.assertEqual(role_multiplier(5, "initiator"), 5.0)
        self.assertEqual(role_multiplier(5, "cosponsor"), 2.5)
        self.assertEqual(role_multiplier(5, "observer"), 0.0)
        self.assertEqual(role_multiplier(5, None), 0.0)


class TestAccumulate(unittest.TestCase):
    def test_sums_per_party_and_topic(self) -> None:
        scores = accumulate_party_topic_scores(
            [
                _contribution("a", "b1", "passed", "initiator"),
                _contribution("a", "b2", "first_reading", "cosponsor"),
                _contribution("a", "b3", "submitted", "initiator", topic="education"),
                _contribution("b", "b1", "passed", "cosponsor"),
            ]
        )

        self.assertEqual(
            scores,
            [
                PartyTopicScore(party_id="a", topic="economy", raw_score=6.0, bill_count=2),
                PartyTopicScore(party_id="a", topic="education", raw_score=1.0, bill_count=1),
                PartyTopicScore(party_id="b", topic="economy", raw_score=2.5, bill_count=1),
            ],
        )

    def test_same_bill_counted_once(self) -> None:
        scores = accumulate_party_topic_scores(
            [
                _contribution("a", "b1", "passed", "initiator"),
                _contribution("a", "b1", "passed", "cosponsor"),
            ]
        )

        self.assertEqual(scores[0].bill_count, 1)
        self.assertEqual(scores[0].raw_score, 7.5)

    def test_zero_totals_are_dropped(self) -> None:
        scores = accumulate_party_topic_scores([_contribution("a", "b1", "rejected", "initiator")])

        self.assertEqual(scores, [])


class TestNormalize(unittest.TestCase):
    def test_min_max_per_topic(self) -> None:
        rows = [
            PartyTopicScore(party_id="a", topic="economy", raw_score=10.0, bill_count=3),
            PartyTopicScore(party_id="b", topic="economy", raw_score=5.0, bill_count=2),
            PartyTopicScore(party_id="c", topic="economy", raw_score=0.0, bill_count=1),
        ]

        normalized = normalize_party_scores(rows, ["economy"])

        self.assertEqual(normalized, {"a": {"economy": 1.0}, "b": {"economy": 0.5}, "c": {"economy": 0.0}})

    def test_single_party_gets_full_score(self) -> None:
        rows = [PartyTopicScore(party_id="a", topic="healthcare", raw_score=2.0, bill_count=1)]

        self.assertEqual(normalize_party_scores(rows, ["healthcare"]), {"a": {"healthcare": 1.0}})

    def test_equal_zero_scores_stay_zero(self) -> None:
        rows = [
            PartyTopicScore(party_id="a", topic="economy", raw_score=0.0, bill_count=1),
            PartyTopicScore(party_id="b", topic="economy", raw_score=0.0, bill_count=1),
        ]

        normalized = normalize_party_scores(rows, ["economy"])

        self.assertEqual(normalized["a"]["economy"], 0.0)
        self.assertEqual(normalized["b"]["economy"], 0.0)

    def test_unlisted_topics_are_dropped(self) -> None:
        rows = [PartyTopicScore(party_id="a", topic="other", raw_score=4.0, bill_count=1)]

        normalized = normalize_party_scores(rows, ["economy"])

        self.assertEqual(normalized, {})
        self.assertEqual(normalized_lookup(normalized, "a", "other"), 0.0)
