"""
db/models/person.py

Person (member of Knesset) and government role models.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ExternalKeyMixin, TimestampMixin


class Person(Base, ExternalKeyMixin, TimestampMixin):
    __tablename__ = "persons"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    gender: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="unknown",
        comment="male, female, unknown",
    )
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("external_id", "external_source", name="uq_persons_external"),
        Index("ix_persons_is_current", "is_current"),
    )


class GovernmentRole(Base, ExternalKeyMixin, TimestampMixin):
    __tablename__ = "government_roles"

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
    position_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position_label: Mapped[str] = mapped_column(String(128), nullable=False)
    ministry_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ministry_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    duty_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    government_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    knesset_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("external_id", "external_source", name="uq_government_roles_external"),
        Index("ix_government_roles_person_id", "person_id"),
        Index("ix_government_roles_is_current", "is_current"),
    )
