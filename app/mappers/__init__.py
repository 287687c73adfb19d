"""
app/mappers package marker.
"""

from app.mappers.bill_mapper import infer_topic, map_bill, map_bill_initiator, map_bill_stage, map_status
from app.mappers.committee_mapper import map_committee, map_committee_member
from app.mappers.field_resolution import MappingContext, MissingIdentifierError
from app.mappers.government_role_mapper import map_person_to_position_to_government_role, position_label
from app.mappers.party_mapper import map_faction_to_party
from app.mappers.person_mapper import map_member_faction_to_membership, map_member_to_person
from app.mappers.vote_mapper import derive_vote_outcome, map_ballot_code, map_vote_header, map_vote_result_record

__all__ = [
    "MappingContext",
    "MissingIdentifierError",
    "derive_vote_outcome",
    "infer_topic",
    "map_ballot_code",
    "map_bill",
    "map_bill_initiator",
    "map_bill_stage",
    "map_committee",
    "map_committee_member",
    "map_faction_to_party",
    "map_member_faction_to_membership",
    "map_member_to_person",
    "map_person_to_position_to_government_role",
    "map_status",
    "map_vote_header",
    "map_vote_result_record",
    "position_label",
]
