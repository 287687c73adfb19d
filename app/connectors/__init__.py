"""
app/connectors package marker.
"""

from app.connectors.base import BaseConnector, ConnectorRequestError
from app.connectors.odata_client import CollectionFetchError, ODataCollectionClient
from app.connectors.odata_metadata import (
    DiscoveredSchema,
    EntitySetInfo,
    MetadataUnavailableError,
    SchemaDiscovery,
    resolve_collection,
)
from app.connectors.outbound_guard import SSRFBlockedError, assert_allowed, fetch_guarded
from app.connectors.response_cache import InMemoryResponseCache, ResponseCache

__all__ = [
    "BaseConnector",
    "ConnectorRequestError",
    "CollectionFetchError",
    "ODataCollectionClient",
    "DiscoveredSchema",
    "EntitySetInfo",
    "MetadataUnavailableError",
    "SchemaDiscovery",
    "resolve_collection",
    "SSRFBlockedError",
    "assert_allowed",
    "fetch_guarded",
    "InMemoryResponseCache",
    "ResponseCache",
]
