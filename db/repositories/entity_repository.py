"""
db/repositories/entity_repository.py

Idempotent upserts for synced domain entities.

All methods are transaction-safe. The caller controls commit/rollback;
this repository never commits on its own.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import and_, func, literal_column, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.base import Base
from db.models.bill import Bill, BillRole, BillStage
from db.models.committee import Committee, CommitteeMembership
from db.models.party import Party, PartyMembership
from db.models.person import GovernmentRole, Person
from db.models.raw_snapshot import SourceLink
from db.models.vote import Vote, VoteRecord


@dataclass(frozen=True)
class UpsertTarget:
    model: type[Base]
    constraint: str
    key_columns: tuple[str, ...]


_EXTERNAL_KEY = ("external_id", "external_source")

UPSERT_TARGETS: dict[str, UpsertTarget] = {
    "party": UpsertTarget(Party, "uq_parties_external", _EXTERNAL_KEY),
    "person": UpsertTarget(Person, "uq_persons_external", _EXTERNAL_KEY),
    "membership": UpsertTarget(
        PartyMembership,
        "uq_party_memberships_person_party_knesset",
        ("person_id", "party_id", "knesset_number"),
    ),
    "bill": UpsertTarget(Bill, "uq_bills_external", _EXTERNAL_KEY),
    "bill_role": UpsertTarget(
        BillRole,
        "uq_bill_roles_person_bill_role",
        ("person_id", "bill_id", "role"),
    ),
    "bill_stage": UpsertTarget(BillStage, "uq_bill_stages_bill_external", ("bill_id", "external_id")),
    "committee": UpsertTarget(Committee, "uq_committees_external", _EXTERNAL_KEY),
    "committee_membership": UpsertTarget(
        CommitteeMembership,
        "uq_committee_memberships_person_committee",
        ("person_id", "committee_id"),
    ),
    "government_role": UpsertTarget(GovernmentRole, "uq_government_roles_external", _EXTERNAL_KEY),
    "vote": UpsertTarget(Vote, "uq_votes_external", _EXTERNAL_KEY),
    "vote_record": UpsertTarget(VoteRecord, "uq_vote_records_vote_person", ("vote_id", "person_id")),
}

# Kinds whose external ids feed the in-memory id maps.
ID_MAP_MODELS: dict[str, type[Base]] = {
    "party": Party,
    "person": Person,
    "bill": Bill,
    "committee": Committee,
    "vote": Vote,
}


class UnknownEntityKindError(KeyError):
    """Raised when an upsert targets an entity kind with no table."""


class EntityRepository:
    """
    Upsert and lookup operations keyed on each kind's natural key.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def upsert(self, kind: str, values: Mapping[str, Any]) -> tuple[uuid.UUID, bool]:
        """
        Insert or update one entity row.

        Parameters
        ----------
        kind:
            Entity kind, one of ``UPSERT_TARGETS``.
        values:
            Column values. Must include the kind's key columns.

        Returns
        -------
        tuple[uuid.UUID, bool]
            Internal id of the row and whether it was newly inserted.
        """
        target = UPSERT_TARGETS.get(kind)
        if target is None:
            raise UnknownEntityKindError(kind)

        stmt = insert(target.model).values(id=uuid.uuid4(), **values)
        update_set: dict[str, Any] = {
            name: stmt.excluded[name]
            for name in values
            if name not in target.key_columns
        }
        update_set["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(
            constraint=target.constraint,
            set_=update_set,
        ).returning(
            target.model.id,
            literal_column("(xmax = 0)").label("inserted"),
        )
        row = self._session.execute(stmt).one()
        return row.id, bool(row.inserted)

    def deactivate_other_memberships(
        self,
        *,
        person_id: uuid.UUID,
        knesset_number: int,
        keep_membership_id: uuid.UUID,
    ) -> int:
        """
        Clear ``is_current`` on the person's other memberships in the same term.
        """
        stmt = (
            update(PartyMembership)
            .where(
                and_(
                    PartyMembership.person_id == person_id,
                    PartyMembership.knesset_number == knesset_number,
                    PartyMembership.id != keep_membership_id,
                    PartyMembership.is_current.is_(True),
                )
            )
            .values(is_current=False, updated_at=func.now())
        )
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)

    def update_vote_tallies(
        self,
        vote_id: uuid.UUID,
        *,
        yes_count: int,
        no_count: int,
        abstain_count: int,
        result: str,
        result_confidence: str,
    ) -> None:
        self._session.execute(
            update(Vote)
            .where(Vote.id == vote_id)
            .values(
                yes_count=yes_count,
                no_count=no_count,
                abstain_count=abstain_count,
                result=result,
                result_confidence=result_confidence,
                updated_at=func.now(),
            )
        )

    def upsert_source_link(
        self,
        *,
        entity_kind: str,
        entity_id: uuid.UUID,
        label: str,
        url: str,
        external_source: str,
        external_id: str,
    ) -> str:
        link_id = f"{entity_kind}-{entity_id}-{external_source}"
        stmt = insert(SourceLink).values(
            id=link_id,
            entity_kind=entity_kind,
            entity_id=entity_id,
            label=label,
            url=url,
            external_source=external_source,
            external_id=external_id,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[SourceLink.id],
            set_={"url": stmt.excluded.url, "label": stmt.excluded.label, "updated_at": func.now()},
        )
        self._session.execute(stmt)
        return link_id

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load_id_map(self, kind: str, external_source: str) -> dict[str, uuid.UUID]:
        """
        Return ``{external_id: id}`` for every row of ``kind`` from one source.
        """
        model = ID_MAP_MODELS.get(kind)
        if model is None:
            raise UnknownEntityKindError(kind)
        stmt = select(model.external_id, model.id).where(model.external_source == external_source)
        return {external_id: entity_id for external_id, entity_id in self._session.execute(stmt)}
