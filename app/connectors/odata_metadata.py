"""
app/connectors/odata_metadata.py

Discovery of the collections exposed by the OData ``$metadata`` document.

The remote collection names are not stable across protocol versions, so each
entity kind carries an ordered list of candidate names and the live metadata
decides which one is used for a run.
"""

from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

import requests

from app.config import ODataSettings, OutboundGuardSettings
from app.connectors.base import BaseConnector, ConnectorRequestError
from app.connectors.outbound_guard import SSRFBlockedError
from app.connectors.response_cache import ResponseCache, cached_fetch

logger = logging.getLogger(__name__)

METADATA_SUFFIX = "/$metadata"


class MetadataUnavailableError(RuntimeError):
    """
    Raised when the metadata document cannot be fetched or parsed.
    """


@dataclass(frozen=True)
class EntityProperty:
    name: str
    type: str
    nullable: bool = True


@dataclass(frozen=True)
class EntitySetInfo:
    name: str
    entity_type: str
    url: str
    properties: tuple[EntityProperty, ...] = ()


@dataclass(frozen=True)
class DiscoveredSchema:
    base_url: str
    entity_sets: tuple[EntitySetInfo, ...]
    discovered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def names(self) -> list[str]:
        return [entity_set.name for entity_set in self.entity_sets]

    def resolve(self, candidates: Sequence[str]) -> str | None:
        return resolve_collection(self.names, candidates)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def base_url_from_metadata_url(metadata_url: str) -> str:
    if metadata_url.endswith(METADATA_SUFFIX):
        return metadata_url[: -len(METADATA_SUFFIX)]
    return metadata_url.rstrip("/")


def parse_metadata(xml_text: str, metadata_url: str) -> DiscoveredSchema:
    """
    Parse an EDMX document into the list of exposed entity sets.

    Any EDMX/EDM namespace version is accepted; elements are matched by local
    name only.

    Raises:
        MetadataUnavailableError: If the text is not well-formed XML or has no
            ``DataServices`` element.
    """

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise MetadataUnavailableError(f"Metadata document is not valid XML: {exc}") from exc

    data_services = _children(root, "DataServices")
    if _local_name(root.tag) != "Edmx" or not data_services:
        raise MetadataUnavailableError("Metadata document has no edmx:DataServices element.")

    base_url = base_url_from_metadata_url(metadata_url)
    properties_by_type: dict[str, tuple[EntityProperty, ...]] = {}
    sets: list[tuple[str, str]] = []

    for schema in _children(data_services[0], "Schema"):
        for entity_type in _children(schema, "EntityType"):
            type_name = entity_type.get("Name")
            if not type_name:
                continue
            properties_by_type[type_name] = tuple(
                EntityProperty(
                    name=prop.get("Name", ""),
                    type=prop.get("Type", ""),
                    nullable=prop.get("Nullable") != "false",
                )
                for prop in _children(entity_type, "Property")
            )
        for container in _children(schema, "EntityContainer"):
            for entity_set in _children(container, "EntitySet"):
                name = entity_set.get("Name")
                if name:
                    sets.append((name, entity_set.get("EntityType", "")))

    entity_sets = tuple(
        EntitySetInfo(
            name=name,
            entity_type=qualified_type,
            url=f"{base_url}/{name}",
            properties=properties_by_type.get(qualified_type.rsplit(".", 1)[-1], ()),
        )
        for name, qualified_type in sets
    )
    return DiscoveredSchema(base_url=base_url, entity_sets=entity_sets)


def resolve_collection(discovered: Iterable[str], candidates: Sequence[str]) -> str | None:
    """
    Return the live collection name for the first matching candidate.

    Candidates are tried in priority order. For each candidate an exact
    case-insensitive match wins over a substring match.
    """

    names = list(discovered)
    for candidate in candidates:
        wanted = candidate.lower()
        for name in names:
            if name.lower() == wanted:
                return name
        for name in names:
            if wanted in name.lower():
                return name
    return None


class SchemaDiscovery(BaseConnector):
    """
    Fetch and parse the metadata document, optionally through a cache handle.
    """

    def __init__(
        self,
        *,
        http_settings: ODataSettings,
        guard_settings: OutboundGuardSettings | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        cache: ResponseCache | None = None,
        cache_ttl_seconds: float = 86400.0,
    ) -> None:
        super().__init__(
            source="knesset_metadata",
            http_settings=http_settings,
            guard_settings=guard_settings,
            session=session,
            sleep=sleep,
        )
        self._default_metadata_url = http_settings.metadata_url
        self._cache = cache
        self._cache_ttl_seconds = cache_ttl_seconds

    def discover(self, metadata_url: str | None = None) -> DiscoveredSchema:
        """
        Return the entity sets exposed by the metadata document.

        Raises:
            MetadataUnavailableError: When the document cannot be fetched,
                is blocked by the outbound guard, or cannot be parsed.
        """

        url = metadata_url or self._default_metadata_url
        try:
            xml_text = cached_fetch(
                self._cache,
                f"odata-metadata:{url}",
                self._cache_ttl_seconds,
                lambda: self._request_text(url=url, headers={"Accept": "application/xml"}),
            )
        except (ConnectorRequestError, SSRFBlockedError) as exc:
            raise MetadataUnavailableError(f"Metadata fetch failed for {url}: {exc}") from exc

        schema = parse_metadata(xml_text, url)
        logger.info("Discovered %s entity sets from %s", len(schema.entity_sets), url)
        return schema
