"""
catmaid_connector_viewer.cache

Connector cache package: entity store, freshness policy, sort indices, query facade.
"""

from catmaid_connector_viewer.cache.connector_cache import ConnectorViewerCache
from catmaid_connector_viewer.cache.entities import ConnectorRecord, Coords, RelationType
from catmaid_connector_viewer.cache.errors import (
    ConnectorCacheError,
    MalformedSkeletonError,
    UnknownRelationError,
    UnknownSortFnError,
    UnregisteredConnectorError,
)
from catmaid_connector_viewer.cache.sorting import SortFn

__all__ = [
    "ConnectorCacheError",
    "ConnectorRecord",
    "ConnectorViewerCache",
    "Coords",
    "MalformedSkeletonError",
    "RelationType",
    "SortFn",
    "UnknownRelationError",
    "UnknownSortFnError",
    "UnregisteredConnectorError",
]
