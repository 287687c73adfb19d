"""
tests/test_entity_mappers.py

Unit tests for raw-record to entity mapping.

All tests are pure Python: raw dicts in, frozen entities out.

Coverage
--------
- Field-name fallbacks and identifier normalisation
- Missing identifiers
- OData v2 and v4 date formats
- is_current from flags and from end dates
- Party, person, membership, bill, bill role, bill stage, committee,
  committee member and government role mapping
- Bill status ids, status keyword fallback, topic inference
"""

from __future__ import annotations

import unittest
from datetime import datetime, timezone

from app.domain.entities import BillRoleType, Gender
from app.mappers.bill_mapper import (
    infer_topic,
    map_bill,
    map_bill_initiator,
    map_bill_stage,
    map_status,
)
from app.mappers.committee_mapper import map_committee, map_committee_member
from app.mappers.field_resolution import (
    MappingContext,
    MissingIdentifierError,
    parse_bool,
    parse_datetime,
    parse_int,
    resolve_identifier,
    resolve_is_current,
)
from app.mappers.government_role_mapper import (
    map_person_to_position_to_government_role,
    position_filter,
    position_label,
)
from app.mappers.party_mapper import map_faction_to_party
from app.mappers.person_mapper import (
    infer_gender,
    map_member_faction_to_membership,
    map_member_to_person,
)
from conftest import BASE_URL, FIXED_NOW

CONTEXT = MappingContext(base_url=BASE_URL, external_source="knesset_odata", clock=lambda: FIXED_NOW)


class TestFieldResolution(unittest.TestCase):
    def test_identifier_uses_first_present_field(self) -> None:
        raw = {"FactionID": None, "ID": "", "Id": 17}
        self.assertEqual(resolve_identifier(raw, ("FactionID", "ID", "Id"), "party"), "17")

    def test_integral_float_identifier_is_normalised(self) -> None:
        self.assertEqual(resolve_identifier({"Id": 42.0}, ("Id",), "vote"), "42")

    def test_missing_identifier_names_kind_and_fields(self) -> None:
        with self.assertRaises(MissingIdentifierError) as ctx:
            resolve_identifier({"Name": "x"}, ("FactionID", "ID"), "party")
        self.assertEqual(ctx.exception.entity_kind, "party")
        self.assertEqual(ctx.exception.fields, ("FactionID", "ID"))

    def test_parse_int_variants(self) -> None:
        self.assertEqual(parse_int("25"), 25)
        self.assertEqual(parse_int(25.0), 25)
        self.assertIsNone(parse_int("25.5"))
        self.assertIsNone(parse_int(True))
        self.assertIsNone(parse_int(""))

    def test_parse_bool_variants(self) -> None:
        self.assertTrue(parse_bool("true"))
        self.assertTrue(parse_bool(1))
        self.assertFalse(parse_bool("0"))
        self.assertIsNone(parse_bool("maybe"))

    def test_parse_iso_datetime_without_offset_is_utc(self) -> None:
        self.assertEqual(
            parse_datetime("2022-11-15T10:30:00"),
            datetime(2022, 11, 15, 10, 30, tzinfo=timezone.utc),
        )

    def test_parse_iso_datetime_with_z_suffix(self) -> None:
        self.assertEqual(
            parse_datetime("2022-11-15T10:30:00Z"),
            datetime(2022, 11, 15, 10, 30, tzinfo=timezone.utc),
        )

    def test_parse_v2_date_literal(self) -> None:
        self.assertEqual(
            parse_datetime("/Date(1668508200000)/"),
            datetime(2022, 11, 15, 10, 30, tzinfo=timezone.utc),
        )

    def test_unparseable_date_is_none(self) -> None:
        self.assertIsNone(parse_datetime("not a date"))

    def test_flag_wins_over_end_date(self) -> None:
        raw = {"IsCurrent": False, "FinishDate": None}
        self.assertFalse(resolve_is_current(raw, ("IsCurrent",), ("FinishDate",)))

    def test_end_date_decides_without_flag(self) -> None:
        self.assertTrue(resolve_is_current({"FinishDate": None}, ("IsCurrent",), ("FinishDate",)))
        self.assertFalse(
            resolve_is_current({"FinishDate": "2019-04-30T00:00:00"}, ("IsCurrent",), ("FinishDate",))
        )


class TestPartyAndPersonMappers(unittest.TestCase):
    def test_faction_maps_to_party(self) -> None:
        raw = {
            "FactionID": 1096,
            "Name": "הליכוד",
            "KnessetNum": 25,
            "StartDate": "2022-11-15T00:00:00",
            "FinishDate": None,
            "IsCurrent": True,
            "LastUpdatedDate": "2023-01-02T08:00:00",
        }

        party = map_faction_to_party(raw, CONTEXT)

        self.assertEqual(party.external_id, "1096")
        self.assertEqual(party.external_source, "knesset_odata")
        self.assertEqual(party.name, "הליכוד")
        self.assertEqual(party.knesset_number, 25)
        self.assertTrue(party.is_current)
        self.assertEqual(party.source_url, BASE_URL + "/KNS_Faction(1096)")
        self.assertEqual(party.last_seen_at, FIXED_NOW)
        self.assertEqual(party.last_changed_at, datetime(2023, 1, 2, 8, tzinfo=timezone.utc))

    def test_faction_without_name_is_unknown(self) -> None:
        party = map_faction_to_party({"Id": 5}, CONTEXT)
        self.assertEqual(party.name, "Unknown")

    def test_faction_without_identifier_is_rejected(self) -> None:
        with self.assertRaises(MissingIdentifierError):
            map_faction_to_party({"Name": "ללא מזהה"}, CONTEXT)

    def test_person_name_composed_from_parts(self) -> None:
        raw = {"PersonID": 965, "FirstName": "ישראל", "LastName": "ישראלי", "GenderID": 251, "IsCurrent": True}

        person = map_member_to_person(raw, CONTEXT)

        self.assertEqual(person.external_id, "965")
        self.assertEqual(person.name, "ישראל ישראלי")
        self.assertEqual(person.first_name, "ישראל")
        self.assertEqual(person.last_name, "ישראלי")
        self.assertEqual(person.source_url, BASE_URL + "/KNS_Person(965)")

    def test_person_full_name_preferred(self) -> None:
        raw = {"MemberID": 3, "FullName": "שם מלא", "FirstName": "שם"}
        self.assertEqual(map_member_to_person(raw, CONTEXT).name, "שם מלא")

    def test_gender_inference(self) -> None:
        self.assertEqual(infer_gender({"GenderID": 1}), Gender.MALE)
        self.assertEqual(infer_gender({"GenderDesc": "נקבה"}), Gender.FEMALE)
        self.assertEqual(infer_gender({}), Gender.UNKNOWN)

    def test_membership_from_position_record(self) -> None:
        raw = {
            "PersonToPositionID": 551,
            "PersonID": 965,
            "FactionID": 1096,
            "KnessetNum": 25,
            "StartDate": "2022-11-15T00:00:00",
            "FinishDate": None,
        }

        membership = map_member_faction_to_membership(raw, CONTEXT)

        self.assertEqual(membership.external_id, "551")
        self.assertEqual(membership.person_external_id, "965")
        self.assertEqual(membership.party_external_id, "1096")
        self.assertEqual(membership.knesset_number, 25)
        self.assertTrue(membership.is_current)

    def test_membership_without_knesset_number_uses_sentinel(self) -> None:
        membership = map_member_faction_to_membership({"PersonID": 1, "FactionID": 2}, CONTEXT)

        self.assertEqual(membership.knesset_number, -1)
        self.assertEqual(membership.external_id, "1:2:-1")
        self.assertIsNone(membership.source_url)

    def test_membership_without_faction_is_rejected(self) -> None:
        with self.assertRaises(MissingIdentifierError):
            map_member_faction_to_membership({"PersonID": 1}, CONTEXT)


class TestBillMappers(unittest.TestCase):
    def test_known_status_id(self) -> None:
        self.assertEqual(map_status(118, None), "passed")
        self.assertEqual(map_status(104, "anything"), "submitted")

    def test_status_keyword_fallback(self) -> None:
        self.assertEqual(map_status(None, "הוכנה לקריאה ראשונה"), "first_reading")
        self.assertEqual(map_status(9999, "התקבלה בקריאה שלישית"), "passed")

    def test_unknown_status(self) -> None:
        self.assertEqual(map_status(None, None), "unknown")
        self.assertEqual(map_status(9999, "משהו אחר"), "unknown")

    def test_topic_inference(self) -> None:
        self.assertEqual(infer_topic("חוק בריאות הציבור", None), "healthcare")
        self.assertEqual(infer_topic("חוק מיסוי מקרקעין", None), "economy")
        self.assertEqual(infer_topic("חוק החינוך", None), "education")

    def test_topic_other_and_none(self) -> None:
        self.assertEqual(infer_topic("הצעה כללית", None), "other")
        self.assertIsNone(infer_topic(None, None))
        self.assertIsNone(infer_topic("  ", ""))

    def test_bill_mapping(self) -> None:
        raw = {
            "BillID": 2150001,
            "Name": "הצעת חוק בריאות הציבור (תיקון)",
            "KnessetNum": 25,
            "StatusID": 108,
            "PublicationDate": "2023-02-01T00:00:00",
            "LastUpdatedDate": "2023-03-05T12:00:00",
        }

        bill = map_bill(raw, CONTEXT)

        self.assertEqual(bill.external_id, "2150001")
        self.assertEqual(bill.status, "first_reading")
        self.assertEqual(bill.topic, "healthcare")
        self.assertEqual(bill.knesset_number, 25)
        self.assertEqual(bill.submitted_date, datetime(2023, 2, 1, tzinfo=timezone.utc))
        self.assertEqual(bill.last_status_date, datetime(2023, 3, 5, 12, tzinfo=timezone.utc))
        self.assertEqual(bill.source_url, BASE_URL + "/KNS_Bill(2150001)")

    def test_initiator_role(self) -> None:
        raw = {"BillInitiatorID": 77, "BillID": 2150001, "PersonID": 965, "IsInitiator": True}

        role = map_bill_initiator(raw, CONTEXT)

        self.assertEqual(role.role, BillRoleType.INITIATOR)
        self.assertEqual(role.external_id, "77")
        self.assertEqual(role.bill_external_id, "2150001")
        self.assertEqual(role.person_external_id, "965")

    def test_cosponsor_role_when_not_initiator(self) -> None:
        raw = {"BillID": 10, "PersonID": 20, "IsInitiator": False}

        role = map_bill_initiator(raw, CONTEXT)

        self.assertEqual(role.role, BillRoleType.COSPONSOR)
        self.assertEqual(role.external_id, "10:20:cosponsor")

    def test_bill_stage(self) -> None:
        raw = {"BillHistoryID": 5, "BillID": 10, "StageName": "קריאה ראשונה", "StageDate": "2023-02-01"}

        stage = map_bill_stage(raw, CONTEXT)

        self.assertEqual(stage.external_id, "5")
        self.assertEqual(stage.bill_external_id, "10")
        self.assertEqual(stage.stage_name, "קריאה ראשונה")
        self.assertEqual(stage.stage_date, datetime(2023, 2, 1, tzinfo=timezone.utc))


class TestCommitteeAndGovernmentMappers(unittest.TestCase):
    def test_committee_current_when_not_finished(self) -> None:
        committee = map_committee({"CommitteeID": 922, "Name": "ועדת הכספים", "KnessetNum": 25}, CONTEXT)

        self.assertEqual(committee.external_id, "922")
        self.assertEqual(committee.name, "ועדת הכספים")
        self.assertTrue(committee.is_current)

    def test_committee_finished_is_not_current(self) -> None:
        committee = map_committee({"CommitteeID": 1, "FinishDate": "2019-04-30T00:00:00"}, CONTEXT)
        self.assertFalse(committee.is_current)

    def test_committee_member(self) -> None:
        raw = {"PersonToPositionID": 9001, "PersonID": 965, "CommitteeID": 922, "DutyDesc": "יו\"ר"}

        member = map_committee_member(raw, CONTEXT)

        self.assertEqual(member.external_id, "9001")
        self.assertEqual(member.committee_external_id, "922")
        self.assertEqual(member.role, "יו\"ר")

    def test_government_role_from_position_record(self) -> None:
        raw = {
            "PersonToPositionID": 30679,
            "PersonID": 965,
            "PositionID": 39,
            "KnessetNum": 25,
            "GovMinistryID": 4,
            "GovMinistryName": "משרד האוצר",
            "DutyDesc": "שר האוצר",
            "GovernmentNum": 37,
            "StartDate": "2022-12-29T00:00:00",
            "FinishDate": None,
            "IsCurrent": True,
        }

        role = map_person_to_position_to_government_role(raw, CONTEXT)

        self.assertEqual(role.external_id, "30679")
        self.assertEqual(role.person_external_id, "965")
        self.assertEqual(role.position_id, 39)
        self.assertEqual(role.position_label, "שר")
        self.assertEqual(role.ministry_id, "4")
        self.assertEqual(role.ministry_name, "משרד האוצר")
        self.assertEqual(role.duty_description, "שר האוצר")
        self.assertEqual(role.government_number, 37)
        self.assertEqual(role.knesset_number, 25)
        self.assertEqual(role.start_date, datetime(2022, 12, 29, tzinfo=timezone.utc))
        self.assertIsNone(role.end_date)
        self.assertTrue(role.is_current)
        self.assertEqual(role.source_url, BASE_URL + "/KNS_PersonToPosition(30679)")

    def test_position_helpers(self) -> None:
        self.assertEqual(position_filter(45), "PositionID eq 45")
        self.assertEqual(position_label(45), "ראש הממשלה")
        self.assertEqual(position_label(12345), "תפקיד 12345")
        self.assertEqual(position_label(None), "תפקיד ?")
