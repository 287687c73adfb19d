"""
db/models/party.py

Party (Knesset faction) and party membership models.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ExternalKeyMixin, TimestampMixin


class Party(Base, ExternalKeyMixin, TimestampMixin):
    __tablename__ = "parties"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    abbreviation: Mapped[str | None] = mapped_column(String(64), nullable=True)
    knesset_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    seat_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("external_id", "external_source", name="uq_parties_external"),
        Index("ix_parties_knesset_number", "knesset_number"),
    )


class PartyMembership(Base, ExternalKeyMixin, TimestampMixin):
    """
    Time-bounded person-to-party membership. At most one current row per
    person and Knesset term, maintained by the sync, not by a constraint.
    """

    __tablename__ = "party_memberships"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    person_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("persons.id", ondelete="CASCADE"),
        nullable=False,
    )
    party_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("parties.id", ondelete="CASCADE"),
        nullable=False,
    )
    knesset_number: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint(
            "person_id",
            "party_id",
            "knesset_number",
            name="uq_party_memberships_person_party_knesset",
        ),
        Index("ix_party_memberships_party_current", "party_id", "is_current"),
    )
