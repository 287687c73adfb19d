"""create parliament entity tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def _id_column() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False)


def _external_columns() -> list[sa.Column]:
    return [
        sa.Column("external_id", sa.String(length=64), nullable=False),
        sa.Column("external_source", sa.String(length=64), nullable=False),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "parties",
        _id_column(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("abbreviation", sa.String(length=64), nullable=True),
        sa.Column("knesset_number", sa.Integer(), nullable=True),
        sa.Column("seat_count", sa.Integer(), nullable=True),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        sa.Column("last_changed_at", sa.DateTime(timezone=True), nullable=True),
        *_external_columns(),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_id", "external_source", name="uq_parties_external"),
    )
    op.create_index("ix_parties_knesset_number", "parties", ["knesset_number"], unique=False)

    op.create_table(
        "persons",
        _id_column(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=128), nullable=True),
        sa.Column("last_name", sa.String(length=128), nullable=True),
        sa.Column("gender", sa.String(length=16), nullable=False, comment="male, female, unknown"),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        *_external_columns(),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_id", "external_source", name="uq_persons_external"),
    )
    op.create_index("ix_persons_is_current", "persons", ["is_current"], unique=False)

    op.create_table(
        "party_memberships",
        _id_column(),
        sa.Column("person_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("party_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("knesset_number", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        *_external_columns(),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["person_id"], ["persons.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["party_id"], ["parties.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "person_id",
            "party_id",
            "knesset_number",
            name="uq_party_memberships_person_party_knesset",
        ),
    )
    op.create_index(
        "ix_party_memberships_party_current",
        "party_memberships",
        ["party_id", "is_current"],
        unique=False,
    )

    op.create_table(
        "bills",
        _id_column(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("topic", sa.String(length=64), nullable=True),
        sa.Column("knesset_number", sa.Integer(), nullable=True),
        sa.Column("submitted_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_status_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_changed_at", sa.DateTime(timezone=True), nullable=True),
        *_external_columns(),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_id", "external_source", name="uq_bills_external"),
    )
    op.create_index("ix_bills_status", "bills", ["status"], unique=False)
    op.create_index("ix_bills_topic", "bills", ["topic"], unique=False)

    op.create_table(
        "bill_roles",
        _id_column(),
        sa.Column("person_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("bill_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, comment="initiator, cosponsor"),
        *_external_columns(),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["person_id"], ["persons.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["bill_id"], ["bills.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("person_id", "bill_id", "role", name="uq_bill_roles_person_bill_role"),
    )
    op.create_index("ix_bill_roles_bill_id", "bill_roles", ["bill_id"], unique=False)

    op.create_table(
        "bill_stages",
        _id_column(),
        sa.Column("bill_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("stage_name", sa.String(length=255), nullable=True),
        sa.Column("status", sa.Text(), nullable=True),
        sa.Column("stage_date", sa.DateTime(timezone=True), nullable=True),
        *_external_columns(),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["bill_id"], ["bills.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bill_id", "external_id", name="uq_bill_stages_bill_external"),
    )

    op.create_table(
        "committees",
        _id_column(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("knesset_number", sa.Integer(), nullable=True),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        *_external_columns(),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_id", "external_source", name="uq_committees_external"),
    )

    op.create_table(
        "committee_memberships",
        _id_column(),
        sa.Column("person_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("committee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(length=255), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        *_external_columns(),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["person_id"], ["persons.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["committee_id"], ["committees.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "person_id",
            "committee_id",
            name="uq_committee_memberships_person_committee",
        ),
    )

    op.create_table(
        "government_roles",
        _id_column(),
        sa.Column("person_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position_id", sa.Integer(), nullable=True),
        sa.Column("position_label", sa.String(length=128), nullable=False),
        sa.Column("ministry_id", sa.String(length=64), nullable=True),
        sa.Column("ministry_name", sa.String(length=255), nullable=True),
        sa.Column("duty_description", sa.Text(), nullable=True),
        sa.Column("government_number", sa.Integer(), nullable=True),
        sa.Column("knesset_number", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        *_external_columns(),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["person_id"], ["persons.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_id", "external_source", name="uq_government_roles_external"),
    )
    op.create_index("ix_government_roles_person_id", "government_roles", ["person_id"], unique=False)
    op.create_index("ix_government_roles_is_current", "government_roles", ["is_current"], unique=False)

    op.create_table(
        "votes",
        _id_column(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("vote_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("knesset_number", sa.Integer(), nullable=True),
        sa.Column("yes_count", sa.Integer(), nullable=True),
        sa.Column("no_count", sa.Integer(), nullable=True),
        sa.Column("abstain_count", sa.Integer(), nullable=True),
        sa.Column("result", sa.String(length=16), nullable=False, comment="passed, rejected, unknown"),
        sa.Column(
            "result_confidence",
            sa.String(length=8),
            nullable=False,
            comment="high (tallies), low (option label keywords), none",
        ),
        *_external_columns(),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_id", "external_source", name="uq_votes_external"),
    )
    op.create_index("ix_votes_vote_date", "votes", ["vote_date"], unique=False)

    op.create_table(
        "vote_records",
        _id_column(),
        sa.Column("vote_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("person_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.String(length=16), nullable=False, comment="yes, no, abstain, did_not_vote"),
        *_external_columns(),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["vote_id"], ["votes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["person_id"], ["persons.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("vote_id", "person_id", name="uq_vote_records_vote_person"),
    )
    op.create_index("ix_vote_records_person_id", "vote_records", ["person_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_vote_records_person_id", table_name="vote_records")
    op.drop_table("vote_records")
    op.drop_index("ix_votes_vote_date", table_name="votes")
    op.drop_table("votes")
    op.drop_index("ix_government_roles_is_current", table_name="government_roles")
    op.drop_index("ix_government_roles_person_id", table_name="government_roles")
    op.drop_table("government_roles")
    op.drop_table("committee_memberships")
    op.drop_table("committees")
    op.drop_table("bill_stages")
    op.drop_index("ix_bill_roles_bill_id", table_name="bill_roles")
    op.drop_table("bill_roles")
    op.drop_index("ix_bills_topic", table_name="bills")
    op.drop_index("ix_bills_status", table_name="bills")
    op.drop_table("bills")
    op.drop_index("ix_party_memberships_party_current", table_name="party_memberships")
    op.drop_table("party_memberships")
    op.drop_index("ix_persons_is_current", table_name="persons")
    op.drop_table("persons")
    op.drop_index("ix_parties_knesset_number", table_name="parties")
    op.drop_table("parties")
