"""
db/repositories/party_topic_repository.py

Reads bill-role facts for scoring and rewrites the party/topic aggregate.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import and_, delete, insert, select
from sqlalchemy.orm import Session

from db.models.bill import Bill, BillRole
from db.models.party import PartyMembership
from db.models.party_topic_agg import PartyTopicAgg

_SCORED_ROLES = ("initiator", "cosponsor")
_EXCLUDED_TOPIC = "other"


@dataclass(frozen=True)
class ContributionRow:
    party_id: uuid.UUID
    topic: str
    bill_id: uuid.UUID
    status: str
    role: str


@dataclass(frozen=True)
class PartyTopicRow:
    party_id: uuid.UUID
    topic: str
    raw_score: float
    normalized_score: float
    bill_count: int


class PartyTopicRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def fetch_contributions(self) -> list[ContributionRow]:
        """
        Return one row per (current party membership, bill role) with a
        scoring topic.
        """
        stmt = (
            select(
                PartyMembership.party_id,
                Bill.topic,
                Bill.id,
                Bill.status,
                BillRole.role,
            )
            .join(Bill, Bill.id == BillRole.bill_id)
            .join(
                PartyMembership,
                and_(
                    PartyMembership.person_id == BillRole.person_id,
                    PartyMembership.is_current.is_(True),
                ),
            )
            .where(
                BillRole.role.in_(_SCORED_ROLES),
                Bill.topic.is_not(None),
                Bill.topic != _EXCLUDED_TOPIC,
            )
        )
        return [
            ContributionRow(party_id=party_id, topic=topic, bill_id=bill_id, status=status, role=role)
            for party_id, topic, bill_id, status, role in self._session.execute(stmt)
        ]

    def replace_all(self, rows: Sequence[PartyTopicRow], *, computed_at: datetime) -> int:
        """
        Delete the whole aggregate and insert ``rows`` in its place.
        """
        self._session.execute(delete(PartyTopicAgg))
        if not rows:
            return 0
        self._session.execute(
            insert(PartyTopicAgg),
            [
                {
                    "id": uuid.uuid4(),
                    "party_id": row.party_id,
                    "topic": row.topic,
                    "raw_score": row.raw_score,
                    "normalized_score": row.normalized_score,
                    "bill_count": row.bill_count,
                    "computed_at": computed_at,
                }
                for row in rows
            ],
        )
        return len(rows)
