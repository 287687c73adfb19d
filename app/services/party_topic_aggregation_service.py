"""
app/services/party_topic_aggregation_service.py

Recomputes the party/topic legislative activity aggregate.

The aggregate is rebuilt from scratch on every call: contributions are read
from bill roles of current party members, scored, normalized per topic, and
written in one replace.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

from app.logging_utils import log_event
from app.mappers.bill_mapper import SCORING_TOPICS
from app.mappers.field_resolution import utc_now
from app.repositories.sync_store import AggregateStore, SqlAlchemySyncStore
from app.scoring.party_topic_scoring import (
    BillContribution,
    accumulate_party_topic_scores,
    normalize_party_scores,
    normalized_lookup,
)
from db.repositories.party_topic_repository import PartyTopicRow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregateResult:
    rows_written: int
    parties_updated: int
    duration_ms: int


class PartyTopicAggregationService:
    """
    Builds ``party_topic_aggs`` rows from the synced bill roles.
    """

    def __init__(
        self,
        store: AggregateStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._clock = clock
        self._monotonic = monotonic

    def run(self) -> AggregateResult:
        started = self._monotonic()
        contributions = self._store.fetch_contributions()

        party_ids: dict[str, uuid.UUID] = {}
        facts: list[BillContribution] = []
        for row in contributions:
            key = str(row.party_id)
            party_ids[key] = row.party_id
            facts.append(
                BillContribution(
                    party_id=key,
                    topic=row.topic,
                    bill_id=str(row.bill_id),
                    status=row.status,
                    role=row.role,
                )
            )

        scores = [score for score in accumulate_party_topic_scores(facts) if score.topic in SCORING_TOPICS]
        normalized = normalize_party_scores(scores, SCORING_TOPICS)
        rows = [
            PartyTopicRow(
                party_id=party_ids[score.party_id],
                topic=score.topic,
                raw_score=score.raw_score,
                normalized_score=normalized_lookup(normalized, score.party_id, score.topic),
                bill_count=score.bill_count,
            )
            for score in scores
        ]

        written = self._store.replace_party_topic_aggs(rows, computed_at=self._clock())
        result = AggregateResult(
            rows_written=written,
            parties_updated=len({row.party_id for row in rows}),
            duration_ms=int(round((self._monotonic() - started) * 1000)),
        )
        log_event(
            logger,
            logging.INFO,
            "party_topic_aggregate_completed",
            contributions=len(contributions),
            rows_written=result.rows_written,
            parties_updated=result.parties_updated,
            duration_ms=result.duration_ms,
        )
        return result


@lru_cache(maxsize=1)
def get_party_topic_aggregation_service() -> PartyTopicAggregationService:
    return PartyTopicAggregationService(SqlAlchemySyncStore())
