"""
tests/test_outbound_guard.py

Unit tests for the outbound URL allowlist.

Coverage
--------
- Exact and subdomain host matches
- Hosts outside the allowlist and look-alike suffixes
- Invalid URLs and unsupported schemes
- https-only enforcement in production mode
- User-Agent override on guarded requests
- No request dispatched when a URL is blocked
"""

from __future__ import annotations

import pytest

from app.config import DEFAULT_USER_AGENT, OutboundGuardSettings
from app.connectors.outbound_guard import (
    SSRFBlockedError,
    assert_allowed,
    fetch_guarded,
    is_host_allowed,
)
from conftest import FakeResponse, FakeSession

LOCAL = OutboundGuardSettings(allowed_domains=("knesset.gov.il", "gov.il"), production_mode=False)
PRODUCTION = OutboundGuardSettings(allowed_domains=("knesset.gov.il", "gov.il"), production_mode=True)


# ---------------------------------------------------------------------------
# Host matching
# ---------------------------------------------------------------------------


class TestHostMatching:
    def test_exact_domain_is_allowed(self) -> None:
        assert is_host_allowed("knesset.gov.il", ("knesset.gov.il",))

    def test_subdomain_is_allowed(self) -> None:
        assert is_host_allowed("main.knesset.gov.il", ("knesset.gov.il",))

    def test_lookalike_suffix_is_rejected(self) -> None:
        assert not is_host_allowed("evilknesset.gov.il", ("knesset.gov.il",))

    def test_case_and_trailing_dot_are_ignored(self) -> None:
        assert is_host_allowed("Knesset.Gov.IL.", ("knesset.gov.il",))


# ---------------------------------------------------------------------------
# assert_allowed
# ---------------------------------------------------------------------------


class TestAssertAllowed:
    def test_allowlisted_https_url_passes(self) -> None:
        assert_allowed("https://knesset.gov.il/OdataV4/ParliamentInfo/KNS_Bill", LOCAL)

    def test_parent_domain_entry_covers_other_subdomains(self) -> None:
        assert_allowed("https://data.gov.il/api", LOCAL)

    def test_foreign_host_is_blocked_with_allowlist_message(self) -> None:
        with pytest.raises(SSRFBlockedError) as excinfo:
            assert_allowed("https://example.com/data", LOCAL)
        message = str(excinfo.value)
        assert "example.com" in message
        assert "not in the allowlist" in message
        assert "knesset.gov.il" in message

    def test_internal_address_is_blocked(self) -> None:
        with pytest.raises(SSRFBlockedError):
            assert_allowed("http://169.254.169.254/latest/meta-data", LOCAL)

    def test_relative_url_is_invalid(self) -> None:
        with pytest.raises(SSRFBlockedError, match="Invalid URL"):
            assert_allowed("/OdataV4/ParliamentInfo", LOCAL)

    def test_unsupported_scheme_is_blocked(self) -> None:
        with pytest.raises(SSRFBlockedError):
            assert_allowed("ftp://knesset.gov.il/file", LOCAL)

    def test_http_is_allowed_outside_production(self) -> None:
        assert_allowed("http://knesset.gov.il/OdataV4/ParliamentInfo", LOCAL)

    def test_http_is_blocked_in_production(self) -> None:
        with pytest.raises(SSRFBlockedError, match="https"):
            assert_allowed("http://knesset.gov.il/OdataV4/ParliamentInfo", PRODUCTION)


# ---------------------------------------------------------------------------
# fetch_guarded
# ---------------------------------------------------------------------------


class TestFetchGuarded:
    def test_user_agent_overrides_caller_header(self) -> None:
        session = FakeSession(responses=[FakeResponse(payload={"value": []})])

        fetch_guarded(
            session,  # type: ignore[arg-type]
            "https://knesset.gov.il/OdataV4/ParliamentInfo/KNS_Bill",
            headers={"User-Agent": "curl/8", "Accept": "application/json"},
            settings=LOCAL,
        )

        assert len(session.calls) == 1
        headers = session.calls[0]["headers"]
        assert headers["User-Agent"] == DEFAULT_USER_AGENT
        assert headers["Accept"] == "application/json"

    def test_blocked_url_never_reaches_the_session(self) -> None:
        session = FakeSession(responses=[FakeResponse(payload={})])

        with pytest.raises(SSRFBlockedError):
            fetch_guarded(session, "https://example.com/", settings=LOCAL)  # type: ignore[arg-type]

        assert session.calls == []
