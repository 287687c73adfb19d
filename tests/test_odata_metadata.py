"""
tests/test_odata_metadata.py

Unit tests for metadata parsing, candidate-name resolution, and discovery
through the injected response cache.

Coverage
--------
- Entity sets and properties parsed from an EDMX document
- Empty schema
- Malformed XML and missing DataServices
- Candidate resolution: priority order, exact over substring, no match
- Discovery caches the document and reuses it
- Discovery without a cache fetches every time
- Fetch failure surfaces as MetadataUnavailableError
- Cache read failures degrade to a direct fetch
"""

from __future__ import annotations

from typing import Any

import pytest

from app.config import ODataSettings, OutboundGuardSettings
from app.connectors.odata_metadata import (
    MetadataUnavailableError,
    SchemaDiscovery,
    base_url_from_metadata_url,
    parse_metadata,
    resolve_collection,
)
from app.connectors.response_cache import InMemoryResponseCache
from conftest import BASE_URL, METADATA_URL, FakeResponse, FakeSession, metadata_xml

LEGACY_SETS = ["KnssFaction", "KnssMember", "KnssBill", "KnssCommittee"]


def _discovery(session: FakeSession, cache: Any = None) -> SchemaDiscovery:
    return SchemaDiscovery(
        http_settings=ODataSettings(
            base_url=BASE_URL,
            metadata_url=METADATA_URL,
            max_retries=0,
        ),
        guard_settings=OutboundGuardSettings(),
        session=session,  # type: ignore[arg-type]
        sleep=lambda _seconds: None,
        cache=cache,
        cache_ttl_seconds=60.0,
    )


class BrokenCache:
    def get(self, key: str) -> Any:
        raise ConnectionError("cache down")

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        raise ConnectionError("cache down")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParseMetadata:
    def test_lists_entity_sets_in_document_order(self) -> None:
        schema = parse_metadata(metadata_xml(LEGACY_SETS), METADATA_URL)

        assert schema.names == LEGACY_SETS
        assert schema.base_url == BASE_URL

    def test_entity_set_carries_url_type_and_properties(self) -> None:
        schema = parse_metadata(metadata_xml(["KNS_Bill"]), METADATA_URL)

        entity_set = schema.entity_sets[0]
        assert entity_set.url == BASE_URL + "/KNS_Bill"
        assert entity_set.entity_type == "ParliamentInfo.KNS_Bill"
        assert [prop.name for prop in entity_set.properties] == ["Id", "Name"]
        assert entity_set.properties[0].nullable is False
        assert entity_set.properties[1].nullable is True

    def test_empty_schema_has_no_sets(self) -> None:
        schema = parse_metadata(metadata_xml([]), METADATA_URL)

        assert schema.names == []

    def test_malformed_xml_is_unavailable(self) -> None:
        with pytest.raises(MetadataUnavailableError):
            parse_metadata("<edmx:Edmx", METADATA_URL)

    def test_document_without_data_services_is_unavailable(self) -> None:
        with pytest.raises(MetadataUnavailableError):
            parse_metadata("<html><body>maintenance</body></html>", METADATA_URL)

    def test_base_url_strips_metadata_segment(self) -> None:
        assert base_url_from_metadata_url(METADATA_URL) == BASE_URL


# ---------------------------------------------------------------------------
# Candidate resolution
# ---------------------------------------------------------------------------


class TestResolveCollection:
    def test_first_candidate_with_a_match_wins(self) -> None:
        names = LEGACY_SETS
        assert resolve_collection(names, ("KNS_Person", "KnssMember", "KnessetMember")) == "KnssMember"

    def test_substring_match_when_no_exact_name(self) -> None:
        assert resolve_collection(LEGACY_SETS, ("Faction",)) == "KnssFaction"

    def test_exact_match_preferred_over_substring(self) -> None:
        names = ["KNS_BillInitiator", "KNS_Bill"]
        assert resolve_collection(names, ("KNS_Bill",)) == "KNS_Bill"

    def test_match_is_case_insensitive(self) -> None:
        assert resolve_collection(["kns_faction"], ("KNS_Faction",)) == "kns_faction"

    def test_no_match_returns_none(self) -> None:
        assert resolve_collection(LEGACY_SETS, ("KNS_PlenumVote", "PlenumVote")) is None


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class TestSchemaDiscovery:
    def test_discovery_uses_cache_on_second_call(self) -> None:
        session = FakeSession(responses=[FakeResponse(text=metadata_xml(LEGACY_SETS))])
        discovery = _discovery(session, cache=InMemoryResponseCache())

        first = discovery.discover()
        second = discovery.discover()

        assert first.names == second.names == LEGACY_SETS
        assert len(session.calls) == 1
        assert session.calls[0]["url"] == METADATA_URL

    def test_discovery_without_cache_fetches_each_time(self) -> None:
        session = FakeSession(
            responses=[
                FakeResponse(text=metadata_xml(LEGACY_SETS)),
                FakeResponse(text=metadata_xml(LEGACY_SETS)),
            ]
        )
        discovery = _discovery(session)

        discovery.discover()
        discovery.discover()

        assert len(session.calls) == 2

    def test_fetch_failure_is_metadata_unavailable(self) -> None:
        session = FakeSession(responses=[FakeResponse(status_code=500)])
        discovery = _discovery(session)

        with pytest.raises(MetadataUnavailableError):
            discovery.discover()

    def test_blocked_metadata_url_is_metadata_unavailable(self) -> None:
        session = FakeSession(responses=[])
        discovery = _discovery(session)

        with pytest.raises(MetadataUnavailableError):
            discovery.discover("https://example.com/$metadata")

        assert session.calls == []

    def test_broken_cache_degrades_to_direct_fetch(self) -> None:
        session = FakeSession(responses=[FakeResponse(text=metadata_xml(LEGACY_SETS))])
        discovery = _discovery(session, cache=BrokenCache())

        schema = discovery.discover()

        assert schema.names == LEGACY_SETS
        assert len(session.calls) == 1


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class TestInMemoryResponseCache:
    def test_entry_expires_after_ttl(self) -> None:
        now = [100.0]
        cache = InMemoryResponseCache(clock=lambda: now[0])

        cache.set("k", "v", ttl_seconds=10.0)
        assert cache.get("k") == "v"

        now[0] = 111.0
        assert cache.get("k") is None

    def test_clear_drops_everything(self) -> None:
        cache = InMemoryResponseCache()
        cache.set("k", "v", ttl_seconds=10.0)

        cache.clear()

        assert cache.get("k") is None
