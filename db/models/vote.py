"""
db/models/vote.py

Plenum vote and per-member vote record models.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ExternalKeyMixin, TimestampMixin


class Vote(Base, ExternalKeyMixin, TimestampMixin):
    __tablename__ = "votes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    vote_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    knesset_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    yes_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    no_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    abstain_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    result: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="unknown",
        comment="passed, rejected, unknown",
    )
    result_confidence: Mapped[str] = mapped_column(
        String(8),
        nullable=False,
        default="none",
        comment="high (tallies), low (option label keywords), none",
    )

    __table_args__ = (
        UniqueConstraint("external_id", "external_source", name="uq_votes_external"),
        Index("ix_votes_vote_date", "vote_date"),
    )


class VoteRecord(Base, ExternalKeyMixin, TimestampMixin):
    __tablename__ = "vote_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    vote_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("votes.id", ondelete="CASCADE"),
        nullable=False,
    )
    person_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("persons.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="yes, no, abstain, did_not_vote",
    )

    __table_args__ = (
        UniqueConstraint("vote_id", "person_id", name="uq_vote_records_vote_person"),
        Index("ix_vote_records_person_id", "person_id"),
    )
