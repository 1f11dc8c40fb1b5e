"""
catmaid_connector_viewer.catmaid_client

CATMAID client package.

Responsibilities:
- Provide the transport boundary (`fetch`) used by the connector cache.
"""

from catmaid_connector_viewer.catmaid_client.http import (
    CatmaidApiError,
    CatmaidClient,
    create_http_client,
)

__all__ = ["CatmaidApiError", "CatmaidClient", "create_http_client"]


# --- Module Notes -----------------------------------------------------------
# The cache depends on this boundary (not on httpx directly), which keeps it testable
# with `httpx.MockTransport`.
