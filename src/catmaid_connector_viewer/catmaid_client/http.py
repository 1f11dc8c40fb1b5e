"""
catmaid_connector_viewer.catmaid_client.http

HTTP client boundary used by the connector cache to talk to a CATMAID backend.

Responsibilities:
- Attach the CATMAID API token (if configured) to each request.
- Issue the generic `fetch(path, method, params)` call the cache depends on.
- Provide typed helpers for the two endpoints the cache uses
  (compact skeleton detail with connectors, neuron name lookup).
"""

from __future__ import annotations

from typing import Any, Literal

import httpx

from catmaid_connector_viewer.observability.logging import get_logger
from catmaid_connector_viewer.settings import Settings

log = get_logger(__name__)


class CatmaidApiError(Exception):
    """
    CATMAID reports many application errors as a 200 response with an `error` key.
    """

    def __init__(self, path: str, error: str, detail: str | None = None) -> None:
        super().__init__(f"{path}: {error}")
        self.path = path
        self.error = error
        self.detail = detail


class CatmaidClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    @property
    def project_id(self) -> int:
        return self._settings.project_id

    def _auth_headers(self) -> dict[str, str]:
        # CATMAID token auth; Django's own Authorization header is left to session auth.
        if not self._settings.api_token:
            return {}
        return {"X-Authorization": f"Token {self._settings.api_token}"}

    async def fetch(
        self,
        path: str,
        method: Literal["GET", "POST"] = "GET",
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Fetch JSON from `path` (relative to the CATMAID base url).

        GET params travel in the query string, POST params as a form body.
        Non-2xx responses raise `httpx.HTTPStatusError`; CATMAID error payloads
        raise `CatmaidApiError`.
        """

        url = "/" + path.lstrip("/")
        if method == "GET":
            r = await self._http.get(url, params=_encode(params), headers=self._auth_headers())
        elif method == "POST":
            r = await self._http.post(url, data=_encode(params), headers=self._auth_headers())
        else:
            raise ValueError(f"unsupported method: {method}")
        r.raise_for_status()

        payload = r.json()
        if isinstance(payload, dict) and "error" in payload:
            log.warning("catmaid_error", path=url, error=payload["error"])
            raise CatmaidApiError(url, str(payload["error"]), payload.get("detail"))
        return payload

    async def compact_detail(self, skeleton_id: int) -> list[Any]:
        # Returns [treenode_rows, connector_rows, ...]; only the first two are used.
        return await self.fetch(
            f"{self.project_id}/skeletons/{skeleton_id}/compact-detail",
            "GET",
            {"with_connectors": True},
        )

    async def neuron_name(self, skeleton_id: int) -> str:
        json = await self.fetch(f"{self.project_id}/skeleton/{skeleton_id}/neuronname", "GET")
        return json["neuronname"]


def _encode(params: dict[str, Any] | None) -> dict[str, Any] | None:
    # Django expects lowercase booleans ("true"/"false") in query strings and forms.
    if params is None:
        return None
    return {k: (str(v).lower() if isinstance(v, bool) else v) for k, v in params.items()}


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.catmaid_base_url.rstrip("/"),
        timeout=settings.request_timeout_seconds,
        headers={"Accept": "application/json", "X-Requested-With": "XMLHttpRequest"},
    )


# --- Module Notes -----------------------------------------------------------
# No retries here: the cache's staleness check re-triggers a fetch on the next access,
# and the caller decides whether to retry sooner.
