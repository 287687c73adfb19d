"""
app/config.py

Application-level configuration helpers for the Knesset sync pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_ODATA_BASE_URL = "https://knesset.gov.il/OdataV4/ParliamentInfo"
DEFAULT_ALLOWED_DOMAINS: tuple[str, ...] = ("knesset.gov.il", "gov.il")
DEFAULT_USER_AGENT = "KnessetVote-ETL/1.0 (data-transparency-project)"
DEFAULT_EXTERNAL_SOURCE = "knesset_odata"

_PRODUCTION_ENVIRONMENTS = {"prod", "production"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _parse_domain_list(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_ALLOWED_DOMAINS
    domains = tuple(
        token.strip().lower().lstrip(".")
        for token in raw.split(",")
        if token.strip()
    )
    return domains or DEFAULT_ALLOWED_DOMAINS


@dataclass(frozen=True)
class OutboundGuardSettings:
    """
    Allowlist settings applied to every outbound request.
    """

    allowed_domains: tuple[str, ...] = DEFAULT_ALLOWED_DOMAINS
    production_mode: bool = False
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class ODataSettings:
    """
    Remote OData source and HTTP behavior settings.
    """

    base_url: str = DEFAULT_ODATA_BASE_URL
    metadata_url: str = DEFAULT_ODATA_BASE_URL + "/$metadata"
    page_size: int = 100
    request_delay_seconds: float = 0.3
    timeout_seconds: float = 30.0
    max_retries: int = 3
    backoff_initial_seconds: float = 1.0
    backoff_multiplier: float = 2.0


@dataclass(frozen=True)
class SyncSettings:
    """
    Runtime settings for sync orchestration.
    """

    external_source: str = DEFAULT_EXTERNAL_SOURCE
    concurrency: int = 3
    max_error_messages: int = 500
    sync_vote_records: bool = False
    metadata_cache_ttl_seconds: float = 86400.0
    commit_hash: str | None = None


@lru_cache(maxsize=1)
def get_outbound_guard_settings() -> OutboundGuardSettings:
    """
    Return cached outbound allowlist settings from environment variables.
    """

    environment = _get_str_env("ENVIRONMENT", "local").lower()
    return OutboundGuardSettings(
        allowed_domains=_parse_domain_list(_get_optional_str_env("ALLOWED_FETCH_DOMAINS")),
        production_mode=environment in _PRODUCTION_ENVIRONMENTS,
        user_agent=_get_str_env("ETL_USER_AGENT", DEFAULT_USER_AGENT),
    )


@lru_cache(maxsize=1)
def get_odata_settings() -> ODataSettings:
    """
    Return cached OData source settings from environment variables.
    """

    base_url = _get_str_env("KNESSET_ODATA_BASE_URL", DEFAULT_ODATA_BASE_URL).rstrip("/")
    return ODataSettings(
        base_url=base_url,
        metadata_url=_get_str_env("KNESSET_ODATA_METADATA_URL", base_url + "/$metadata"),
        page_size=max(1, _get_int_env("ETL_PAGE_SIZE", 100)),
        request_delay_seconds=max(0.0, _get_float_env("ETL_REQUEST_DELAY_SECONDS", 0.3)),
        timeout_seconds=max(1.0, _get_float_env("ETL_HTTP_TIMEOUT_SECONDS", 30.0)),
        max_retries=max(0, _get_int_env("ETL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("ETL_HTTP_BACKOFF_INITIAL_SECONDS", 1.0)),
        backoff_multiplier=max(1.0, _get_float_env("ETL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
    )


@lru_cache(maxsize=1)
def get_sync_settings() -> SyncSettings:
    """
    Return cached sync orchestration settings from environment variables.
    """

    return SyncSettings(
        external_source=_get_str_env("ETL_EXTERNAL_SOURCE", DEFAULT_EXTERNAL_SOURCE),
        concurrency=max(1, _get_int_env("ETL_CONCURRENCY", 3)),
        max_error_messages=max(1, _get_int_env("ETL_MAX_ERROR_MESSAGES", 500)),
        sync_vote_records=_get_bool_env("ETL_SYNC_VOTE_RECORDS", False),
        metadata_cache_ttl_seconds=max(0.0, _get_float_env("ETL_METADATA_CACHE_TTL_SECONDS", 86400.0)),
        commit_hash=_get_optional_str_env("COMMIT_HASH"),
    )
