"""
app/connectors/base.py

Base connector abstraction and shared HTTP mechanics.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from app.config import ODataSettings, OutboundGuardSettings
from app.connectors.outbound_guard import fetch_guarded

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
RETRYABLE_TRANSPORT_ERRORS = (
    requests.Timeout,
    requests.ConnectionError,
    requests.exceptions.ChunkedEncodingError,
)


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector cannot fetch data after retries.
    """


class BaseConnector:
    """
    Guarded HTTP client with retry and exponential backoff.

    Every request goes through the outbound allowlist first. An allowlist
    violation is raised as-is and never retried.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: ODataSettings,
        guard_settings: OutboundGuardSettings | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._guard_settings = guard_settings
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier
        self._sleep = sleep

    def _request_json(
        self,
        *,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Execute a GET request and return parsed JSON with retry support.
        """

        response = self._request(url=url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorRequestError(f"{self.source}: response was not valid JSON.") from exc

    def _request_text(
        self,
        *,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        """
        Execute a GET request and return response text with retry support.
        """

        response = self._request(url=url, params=params, headers=headers)
        return response.text

    def _request(
        self,
        *,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """
        Execute a guarded GET request with exponential backoff.
        """

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                response = fetch_guarded(
                    self._session,
                    url,
                    params=params,
                    headers=headers,
                    timeout=self._timeout_seconds,
                    settings=self._guard_settings,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                is_retryable = status_code in RETRYABLE_STATUS_CODES
                if not is_retryable:
                    logger.error(
                        "Connector request failed source=%s status=%s url=%s error=%s",
                        self.source,
                        status_code,
                        url,
                        exc,
                    )
                    raise ConnectorRequestError(
                        f"{self.source}: HTTP {status_code} for {url}"
                    ) from exc
            except RETRYABLE_TRANSPORT_ERRORS as exc:
                last_error = exc
            except requests.RequestException as exc:
                logger.error(
                    "Connector request failed source=%s url=%s error=%s",
                    self.source,
                    url,
                    exc,
                )
                raise ConnectorRequestError(f"{self.source}: request to {url} failed: {exc}") from exc

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Connector request retry source=%s attempt=%s/%s wait_seconds=%.2f url=%s",
                self.source,
                attempt + 1,
                self._max_retries,
                backoff_seconds,
                url,
            )
            self._sleep(backoff_seconds)

        logger.error(
            "Connector request exhausted retries source=%s url=%s error=%s",
            self.source,
            url,
            last_error,
        )
        raise ConnectorRequestError(f"{self.source}: request failed after retries: {url}") from last_error
