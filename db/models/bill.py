"""
db/models/bill.py

Bill, bill role, and bill stage models.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ExternalKeyMixin, TimestampMixin


class BillStatus:
    SUBMITTED = "submitted"
    FIRST_READING = "first_reading"
    COMMITTEE_REVIEW = "committee_review"
    SECOND_READING = "second_reading"
    THIRD_READING = "third_reading"
    PASSED = "passed"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    UNKNOWN = "unknown"


class Bill(Base, ExternalKeyMixin, TimestampMixin):
    __tablename__ = "bills"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=BillStatus.UNKNOWN,
    )
    topic: Mapped[str | None] = mapped_column(String(64), nullable=True)
    knesset_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    submitted_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_status_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("external_id", "external_source", name="uq_bills_external"),
        Index("ix_bills_status", "status"),
        Index("ix_bills_topic", "topic"),
    )


class BillRole(Base, ExternalKeyMixin, TimestampMixin):
    __tablename__ = "bill_roles"

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
    bill_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("bills.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="initiator, cosponsor",
    )

    __table_args__ = (
        UniqueConstraint("person_id", "bill_id", "role", name="uq_bill_roles_person_bill_role"),
        Index("ix_bill_roles_bill_id", "bill_id"),
    )


class BillStage(Base, ExternalKeyMixin, TimestampMixin):
    __tablename__ = "bill_stages"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    bill_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("bills.id", ondelete="CASCADE"),
        nullable=False,
    )
    stage_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str | None] = mapped_column(Text, nullable=True)
    stage_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("bill_id", "external_id", name="uq_bill_stages_bill_external"),
    )
