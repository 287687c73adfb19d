"""
app/connectors/odata_client.py

Paginated reader for one OData collection.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from typing import Any

import requests

from app.config import ODataSettings, OutboundGuardSettings
from app.connectors.base import BaseConnector, ConnectorRequestError

logger = logging.getLogger(__name__)

RawRecord = dict[str, Any]


class CollectionFetchError(ConnectorRequestError):
    """
    Raised when a collection page cannot be fetched or decoded.
    """


class ODataCollectionClient(BaseConnector):
    """
    Fetch collection pages with ``$top``/``$skip`` paging.

    Pages are requested strictly one after another with a fixed delay between
    them. A page shorter than the page size is the last one.
    """

    def __init__(
        self,
        *,
        http_settings: ODataSettings,
        guard_settings: OutboundGuardSettings | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        base_url: str | None = None,
        source: str = "knesset_odata",
    ) -> None:
        super().__init__(
            source=source,
            http_settings=http_settings,
            guard_settings=guard_settings,
            session=session,
            sleep=sleep,
        )
        self._base_url = (base_url or http_settings.base_url).rstrip("/")
        self._page_size = max(1, http_settings.page_size)
        self._request_delay_seconds = max(0.0, http_settings.request_delay_seconds)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def page_size(self) -> int:
        return self._page_size

    def collection_url(self, collection: str) -> str:
        return f"{self._base_url}/{collection}"

    def iter_pages(
        self,
        collection: str,
        *,
        filter: str | None = None,
        orderby: str | None = None,
    ) -> Iterator[list[RawRecord]]:
        """
        Yield pages of raw records for ``collection``, starting from skip 0.

        Raises:
            CollectionFetchError: On a non-retryable HTTP status, exhausted
                retries, malformed JSON, or a body without a ``value`` list.
            SSRFBlockedError: When the collection URL is outside the allowlist.
        """

        url = self.collection_url(collection)
        skip = 0
        page_number = 0
        while True:
            if page_number > 0 and self._request_delay_seconds > 0:
                self._sleep(self._request_delay_seconds)

            params: dict[str, Any] = {"$top": self._page_size, "$skip": skip}
            if filter:
                params["$filter"] = filter
            if orderby:
                params["$orderby"] = orderby
            params["$format"] = "json"

            page = self._fetch_page(url=url, params=params)
            page_number += 1
            logger.debug(
                "Fetched page collection=%s page=%s skip=%s records=%s",
                collection,
                page_number,
                skip,
                len(page),
            )
            if page:
                yield page
            if len(page) < self._page_size:
                return
            skip += self._page_size

    def _fetch_page(self, *, url: str, params: dict[str, Any]) -> list[RawRecord]:
        try:
            payload = self._request_json(
                url=url,
                params=params,
                headers={"Accept": "application/json"},
            )
        except CollectionFetchError:
            raise
        except ConnectorRequestError as exc:
            raise CollectionFetchError(str(exc)) from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("value"), list):
            raise CollectionFetchError(f"{self.source}: response from {url} has no 'value' list.")
        return [row for row in payload["value"] if isinstance(row, dict)]
