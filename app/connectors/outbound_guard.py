"""
app/connectors/outbound_guard.py

Allowlist check applied before every outbound HTTP request.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit

import requests

from app.config import OutboundGuardSettings, get_outbound_guard_settings

logger = logging.getLogger(__name__)


class SSRFBlockedError(RuntimeError):
    """
    Raised when an outbound URL is malformed or outside the domain allowlist.
    """


def is_host_allowed(hostname: str, allowed_domains: tuple[str, ...]) -> bool:
    host = hostname.lower().rstrip(".")
    return any(host == domain or host.endswith("." + domain) for domain in allowed_domains)


def assert_allowed(url: str, settings: OutboundGuardSettings | None = None) -> None:
    """
    Validate an outbound URL against scheme and domain rules.

    Args:
        url: Absolute URL about to be requested.
        settings: Allowlist settings. Defaults to environment-driven settings.

    Raises:
        SSRFBlockedError: When the URL does not parse, uses a disallowed
            scheme, or targets a host outside the allowlist.
    """

    resolved = settings or get_outbound_guard_settings()
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError as exc:
        raise SSRFBlockedError(f"Invalid URL: {url}") from exc

    if not parts.scheme or not hostname:
        raise SSRFBlockedError(f"Invalid URL: {url}")

    scheme = parts.scheme.lower()
    if resolved.production_mode:
        if scheme != "https":
            raise SSRFBlockedError(
                f"SSRF protection: only https URLs are allowed in production, got {scheme}://{hostname}"
            )
    elif scheme not in {"http", "https"}:
        raise SSRFBlockedError(f"SSRF protection: unsupported URL scheme {scheme!r}")

    if not is_host_allowed(hostname, resolved.allowed_domains):
        raise SSRFBlockedError(
            f"SSRF protection: URL hostname {hostname!r} is not in the allowlist. "
            f"Allowed: {', '.join(resolved.allowed_domains)}"
        )


def fetch_guarded(
    session: requests.Session,
    url: str,
    *,
    method: str = "GET",
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
    settings: OutboundGuardSettings | None = None,
) -> requests.Response:
    """
    Check ``url`` against the allowlist, then dispatch the request.

    The identifying user agent always overrides any caller-provided value.
    """

    resolved = settings or get_outbound_guard_settings()
    assert_allowed(url, resolved)

    merged_headers = dict(headers or {})
    merged_headers["User-Agent"] = resolved.user_agent
    logger.debug("Outbound request method=%s url=%s params=%s", method, url, params)
    return session.request(
        method=method,
        url=url,
        params=params,
        headers=merged_headers,
        timeout=timeout,
    )
