"""
app/sync/stages.py

Per-entity-kind record handlers and the fixed stage order of a sync run.

Each handler maps one raw record, resolves foreign keys through the id maps
of earlier stages, upserts, links provenance, and snapshots the raw record.
A record whose referenced row is not in the id map is skipped, not failed.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from app.domain.entities import (
    BallotPosition,
    EntityKind,
    MembershipEntity,
    SyncedEntity,
)
from app.mappers.bill_mapper import (
    BILL_ENTITY_SET_CANDIDATES,
    BILL_INITIATOR_ENTITY_SET_CANDIDATES,
    BILL_STAGE_ENTITY_SET_CANDIDATES,
    map_bill,
    map_bill_initiator,
    map_bill_stage,
)
from app.mappers.committee_mapper import (
    COMMITTEE_ENTITY_SET_CANDIDATES,
    COMMITTEE_MEMBER_ENTITY_SET_CANDIDATES,
    COMMITTEE_MEMBER_FILTER,
    map_committee,
    map_committee_member,
)
from app.mappers.field_resolution import MappingContext, optional_identifier
from app.mappers.government_role_mapper import (
    GOVERNMENT_ROLE_ENTITY_SET_CANDIDATES,
    MINISTER_POSITION_IDS,
    map_person_to_position_to_government_role,
    position_filter,
)
from app.mappers.party_mapper import FACTION_ENTITY_SET_CANDIDATES, map_faction_to_party
from app.mappers.person_mapper import (
    MEMBERSHIP_ENTITY_SET_CANDIDATES,
    MEMBERSHIP_FILTER,
    PERSON_ENTITY_SET_CANDIDATES,
    map_member_faction_to_membership,
    map_member_to_person,
)
from app.mappers.vote_mapper import (
    VOTE_ENTITY_SET_CANDIDATES,
    VOTE_RECORD_ENTITY_SET_CANDIDATES,
    derive_vote_outcome,
    map_vote_header,
    map_vote_result_record,
)
from app.repositories.sync_store import SyncStore, UpsertResult
from app.sync.id_map import IdMap
from app.sync.snapshot import SnapshotService
from app.sync.stage import RawRecord, RecordOutcome, StageSpec

logger = logging.getLogger(__name__)

SOURCE_LINK_LABEL = "Knesset OData"

# The generic position collection mixes several relations; filter it down.
_POSITION_COLLECTION = "KNS_PersonToPosition"


def entity_values(entity: SyncedEntity, **resolved: Any) -> dict[str, Any]:
    """
    Column values for ``entity`` with external references replaced by
    resolved internal ids.
    """

    values = {
        name: value
        for name, value in dataclasses.asdict(entity).items()
        if not (name.endswith("_external_id"))
    }
    values.update(resolved)
    return values


def _outcome(result: UpsertResult) -> str:
    return RecordOutcome.CREATED if result.created else RecordOutcome.UPDATED


def _filter_when_positions(expression: str) -> Callable[[str], Sequence[str | None]]:
    def filters(collection: str) -> Sequence[str | None]:
        return (expression,) if collection == _POSITION_COLLECTION else (None,)

    return filters


class VoteTallies:
    """
    Thread-safe yes/no/abstain counters per internal vote id.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tallies: dict[uuid.UUID, dict[str, int]] = {}

    def add(self, vote_id: uuid.UUID, position: str) -> None:
        with self._lock:
            tally = self._tallies.setdefault(
                vote_id,
                {BallotPosition.YES: 0, BallotPosition.NO: 0, BallotPosition.ABSTAIN: 0},
            )
            if position in tally:
                tally[position] += 1

    def items(self) -> list[tuple[uuid.UUID, dict[str, int]]]:
        with self._lock:
            return [(vote_id, dict(tally)) for vote_id, tally in self._tallies.items()]


def _membership_rank(start_date: datetime | None, external_id: str) -> tuple[float, tuple[int, str]]:
    started = start_date.timestamp() if start_date is not None else float("-inf")
    return started, ((int(external_id), "") if external_id.isdigit() else (-1, external_id))


class CurrentMemberships:
    """
    Current-membership candidates per (person, Knesset term).

    The latest start date wins, ties go to the higher external id, so the
    winner does not depend on the order records arrive in.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._winners: dict[tuple[uuid.UUID, int], tuple[Any, uuid.UUID]] = {}

    def offer(self, entity: MembershipEntity, person_id: uuid.UUID, membership_id: uuid.UUID) -> None:
        rank = _membership_rank(entity.start_date, entity.external_id)
        key = (person_id, entity.knesset_number)
        with self._lock:
            current = self._winners.get(key)
            if current is None or rank > current[0]:
                self._winners[key] = (rank, membership_id)

    def winners(self) -> list[tuple[uuid.UUID, int, uuid.UUID]]:
        with self._lock:
            return [
                (person_id, knesset_number, membership_id)
                for (person_id, knesset_number), (_rank, membership_id) in self._winners.items()
            ]


class SyncStages:
    """
    Builds the ordered stage list for one run.
    """

    def __init__(
        self,
        *,
        store: SyncStore,
        snapshots: SnapshotService,
        context: MappingContext,
        run_id: uuid.UUID,
        sync_vote_records: bool = False,
    ) -> None:
        self._store = store
        self._snapshots = snapshots
        self._context = context
        self._run_id = run_id
        self._sync_vote_records = sync_vote_records

        self.parties = IdMap(EntityKind.PARTY)
        self.persons = IdMap(EntityKind.PERSON)
        self.bills = IdMap(EntityKind.BILL)
        self.committees = IdMap(EntityKind.COMMITTEE)
        self.votes = IdMap(EntityKind.VOTE)
        self.vote_tallies = VoteTallies()
        self.current_memberships = CurrentMemberships()

    def build(self) -> list[StageSpec]:
        stages = [
            StageSpec(
                kind=EntityKind.PARTY,
                candidates=FACTION_ENTITY_SET_CANDIDATES,
                handler=self.handle_party,
                after=self.parties.freeze,
            ),
            StageSpec(
                kind=EntityKind.PERSON,
                candidates=PERSON_ENTITY_SET_CANDIDATES,
                handler=self.handle_person,
                after=self.persons.freeze,
            ),
            StageSpec(
                kind=EntityKind.MEMBERSHIP,
                candidates=MEMBERSHIP_ENTITY_SET_CANDIDATES,
                handler=self.handle_membership,
                filters=_filter_when_positions(MEMBERSHIP_FILTER),
                after=self.resolve_current_memberships,
            ),
            StageSpec(
                kind=EntityKind.BILL,
                candidates=BILL_ENTITY_SET_CANDIDATES,
                handler=self.handle_bill,
                after=self.bills.freeze,
            ),
            StageSpec(
                kind=EntityKind.BILL_ROLE,
                candidates=BILL_INITIATOR_ENTITY_SET_CANDIDATES,
                handler=self.handle_bill_role,
            ),
            StageSpec(
                kind=EntityKind.BILL_STAGE,
                candidates=BILL_STAGE_ENTITY_SET_CANDIDATES,
                handler=self.handle_bill_stage,
                required=False,
            ),
            StageSpec(
                kind=EntityKind.COMMITTEE,
                candidates=COMMITTEE_ENTITY_SET_CANDIDATES,
                handler=self.handle_committee,
                after=self.committees.freeze,
            ),
            StageSpec(
                kind=EntityKind.COMMITTEE_MEMBERSHIP,
                candidates=COMMITTEE_MEMBER_ENTITY_SET_CANDIDATES,
                handler=self.handle_committee_membership,
                filters=_filter_when_positions(COMMITTEE_MEMBER_FILTER),
            ),
            StageSpec(
                kind=EntityKind.GOVERNMENT_ROLE,
                candidates=GOVERNMENT_ROLE_ENTITY_SET_CANDIDATES,
                handler=self.handle_government_role,
                filters=lambda _collection: tuple(position_filter(pid) for pid in MINISTER_POSITION_IDS),
                dedupe_key=lambda raw: optional_identifier(raw, ("PersonToPositionID", "Id", "ID")),
            ),
            StageSpec(
                kind=EntityKind.VOTE,
                candidates=VOTE_ENTITY_SET_CANDIDATES,
                handler=self.handle_vote,
                after=self.votes.freeze,
            ),
        ]
        if self._sync_vote_records:
            stages.append(
                StageSpec(
                    kind=EntityKind.VOTE_RECORD,
                    candidates=VOTE_RECORD_ENTITY_SET_CANDIDATES,
                    handler=self.handle_vote_record,
                    after=self.flush_vote_tallies,
                )
            )
        return stages

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _snapshot(self, kind: str, entity_id: uuid.UUID | None, external_id: str, raw: RawRecord) -> None:
        self._snapshots.save(kind, entity_id, external_id, self._run_id, raw)

    def _link(self, entity: SyncedEntity, entity_id: uuid.UUID) -> None:
        if not entity.source_url:
            return
        self._store.upsert_source_link(
            entity_kind=entity.kind,
            entity_id=entity_id,
            label=SOURCE_LINK_LABEL,
            url=entity.source_url,
            external_source=entity.external_source,
            external_id=entity.external_id,
        )

    def _upsert_top_level(self, entity: SyncedEntity, raw: RawRecord, id_map: IdMap | None) -> str:
        result = self._store.upsert(entity.kind, entity_values(entity))
        if id_map is not None:
            id_map.set(entity.external_id, result.entity_id)
        self._link(entity, result.entity_id)
        self._snapshot(entity.kind, result.entity_id, entity.external_id, raw)
        return _outcome(result)

    def _skip(self, entity: SyncedEntity, raw: RawRecord, reason: str) -> str:
        logger.debug("Skipping %s %s: %s", entity.kind, entity.external_id, reason)
        self._snapshot(entity.kind, None, entity.external_id, raw)
        return RecordOutcome.SKIPPED

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def handle_party(self, raw: RawRecord) -> str:
        return self._upsert_top_level(map_faction_to_party(raw, self._context), raw, self.parties)

    def handle_person(self, raw: RawRecord) -> str:
        return self._upsert_top_level(map_member_to_person(raw, self._context), raw, self.persons)

    def handle_membership(self, raw: RawRecord) -> str:
        entity = map_member_faction_to_membership(raw, self._context)
        person_id = self.persons.get(entity.person_external_id)
        party_id = self.parties.get(entity.party_external_id)
        if person_id is None or party_id is None:
            return self._skip(entity, raw, "person or party not synced")

        result = self._store.upsert(
            entity.kind,
            entity_values(entity, person_id=person_id, party_id=party_id),
        )
        if entity.is_current:
            self.current_memberships.offer(entity, person_id, result.entity_id)
        self._snapshot(entity.kind, result.entity_id, entity.external_id, raw)
        return _outcome(result)

    def resolve_current_memberships(self) -> None:
        """Keep one current membership per person and Knesset term."""
        for person_id, knesset_number, membership_id in self.current_memberships.winners():
            self._store.deactivate_other_memberships(
                person_id=person_id,
                knesset_number=knesset_number,
                keep_membership_id=membership_id,
            )

    def handle_bill(self, raw: RawRecord) -> str:
        return self._upsert_top_level(map_bill(raw, self._context), raw, self.bills)

    def handle_bill_role(self, raw: RawRecord) -> str:
        entity = map_bill_initiator(raw, self._context)
        person_id = self.persons.get(entity.person_external_id)
        bill_id = self.bills.get(entity.bill_external_id)
        if person_id is None or bill_id is None:
            return self._skip(entity, raw, "person or bill not synced")

        result = self._store.upsert(entity.kind, entity_values(entity, person_id=person_id, bill_id=bill_id))
        self._snapshot(entity.kind, result.entity_id, entity.external_id, raw)
        return _outcome(result)

    def handle_bill_stage(self, raw: RawRecord) -> str:
        entity = map_bill_stage(raw, self._context)
        bill_id = self.bills.get(entity.bill_external_id)
        if bill_id is None:
            return self._skip(entity, raw, "bill not synced")

        result = self._store.upsert(entity.kind, entity_values(entity, bill_id=bill_id))
        self._snapshot(entity.kind, result.entity_id, entity.external_id, raw)
        return _outcome(result)

    def handle_committee(self, raw: RawRecord) -> str:
        return self._upsert_top_level(map_committee(raw, self._context), raw, self.committees)

    def handle_committee_membership(self, raw: RawRecord) -> str:
        entity = map_committee_member(raw, self._context)
        person_id = self.persons.get(entity.person_external_id)
        committee_id = self.committees.get(entity.committee_external_id)
        if person_id is None or committee_id is None:
            return self._skip(entity, raw, "person or committee not synced")

        result = self._store.upsert(
            entity.kind,
            entity_values(entity, person_id=person_id, committee_id=committee_id),
        )
        self._snapshot(entity.kind, result.entity_id, entity.external_id, raw)
        return _outcome(result)

    def handle_government_role(self, raw: RawRecord) -> str:
        entity = map_person_to_position_to_government_role(raw, self._context)
        person_id = self.persons.get(entity.person_external_id)
        if person_id is None:
            return self._skip(entity, raw, "person not synced")

        result = self._store.upsert(entity.kind, entity_values(entity, person_id=person_id))
        self._link(entity, result.entity_id)
        self._snapshot(entity.kind, result.entity_id, entity.external_id, raw)
        return _outcome(result)

    def handle_vote(self, raw: RawRecord) -> str:
        entity = map_vote_header(raw, self._context)
        values = entity_values(entity)
        # Tallies are owned by the vote record stage; never blank them here.
        for name in ("yes_count", "no_count", "abstain_count"):
            if values.get(name) is None:
                values.pop(name, None)
        result = self._store.upsert(entity.kind, values)
        self.votes.set(entity.external_id, result.entity_id)
        self._link(entity, result.entity_id)
        self._snapshot(entity.kind, result.entity_id, entity.external_id, raw)
        return _outcome(result)

    def handle_vote_record(self, raw: RawRecord) -> str:
        entity = map_vote_result_record(raw, self._context)
        vote_id = self.votes.get(entity.vote_external_id)
        person_id = self.persons.get(entity.person_external_id)
        if vote_id is None or person_id is None:
            return self._skip(entity, raw, "vote or person not synced")

        result = self._store.upsert(entity.kind, entity_values(entity, vote_id=vote_id, person_id=person_id))
        self.vote_tallies.add(vote_id, entity.position)
        self._snapshot(entity.kind, result.entity_id, entity.external_id, raw)
        return _outcome(result)

    def flush_vote_tallies(self) -> None:
        for vote_id, tally in self.vote_tallies.items():
            outcome = derive_vote_outcome(None, None, tally[BallotPosition.YES], tally[BallotPosition.NO])
            self._store.update_vote_tallies(
                vote_id,
                yes_count=tally[BallotPosition.YES],
                no_count=tally[BallotPosition.NO],
                abstain_count=tally[BallotPosition.ABSTAIN],
                result=outcome.result,
                result_confidence=outcome.confidence,
            )
