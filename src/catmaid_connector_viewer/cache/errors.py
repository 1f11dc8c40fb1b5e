"""
catmaid_connector_viewer.cache.errors

Domain-specific exceptions raised by the connector cache.

Transport failures are not wrapped: `httpx.HTTPError` and `CatmaidApiError`
propagate to the caller unchanged.
"""

from __future__ import annotations


class ConnectorCacheError(Exception):
    pass


class UnknownRelationError(ConnectorCacheError, ValueError):
    """
    A relation type (or CATMAID relation code) outside the four supported kinds.
    """

    def __init__(self, relation: object) -> None:
        super().__init__(f"unknown connector relation: {relation!r}")
        self.relation = relation


class UnknownSortFnError(ConnectorCacheError, ValueError):
    def __init__(self, name: object) -> None:
        super().__init__(f"unknown sort function: {name!r}")
        self.name = name


class UnregisteredConnectorError(ConnectorCacheError, LookupError):
    """
    Invariant violation: a depth/name lookup for a connector the store has never seen.
    """

    def __init__(self, connector_id: int) -> None:
        super().__init__(f"connector {connector_id} is not in the cache")
        self.connector_id = connector_id


class MalformedSkeletonError(ConnectorCacheError, ValueError):
    """
    A compact-detail payload that cannot be turned into a rooted arbor.
    """

    def __init__(self, skeleton_id: int, reason: str) -> None:
        super().__init__(f"skeleton {skeleton_id}: {reason}")
        self.skeleton_id = skeleton_id
        self.reason = reason
