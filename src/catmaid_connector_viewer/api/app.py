"""
catmaid_connector_viewer.api.app

FastAPI app factory for the connector viewer service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Create and dispose shared infrastructure (CATMAID http client, viewer session).
- Map cache/transport errors onto HTTP responses.
"""

from __future__ import annotations

import locale
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from catmaid_connector_viewer import __version__
from catmaid_connector_viewer.api.routers.health import router as health_router
from catmaid_connector_viewer.api.routers.viewer import router as viewer_router
from catmaid_connector_viewer.cache.errors import (
    MalformedSkeletonError,
    UnknownRelationError,
    UnknownSortFnError,
    UnregisteredConnectorError,
)
from catmaid_connector_viewer.cache.sorting import apply_collation_locale
from catmaid_connector_viewer.catmaid_client.http import (
    CatmaidApiError,
    CatmaidClient,
    create_http_client,
)
from catmaid_connector_viewer.observability.logging import configure_logging, get_logger
from catmaid_connector_viewer.observability.middleware import RequestContextMiddleware
from catmaid_connector_viewer.settings import Settings
from catmaid_connector_viewer.viewer.session import ViewerSession

log = get_logger(__name__)


def create_app(*, settings: Settings, http: httpx.AsyncClient | None = None) -> FastAPI:
    """
    `http` lets tests inject a client backed by `httpx.MockTransport`; the app only
    closes clients it created itself.
    """

    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        project_id=settings.project_id,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, catmaid=settings.catmaid_base_url)
        if settings.collation_locale is not None:
            try:
                apply_collation_locale(settings.collation_locale)
            except locale.Error:
                log.warning(
                    "collation_locale_unavailable", collation_locale=settings.collation_locale
                )
        client_http = http if http is not None else create_http_client(settings)
        app.state.viewer = ViewerSession(
            client=CatmaidClient(settings=settings, http=client_http),
            relation=settings.default_relation,
            sort_fn=settings.default_sort_fn,
            ttl=settings.cache_ttl_seconds,
        )
        try:
            yield
        finally:
            app.state.viewer = None
            if http is None:
                await client_http.aclose()
            log.info("shutdown")

    app = FastAPI(
        title="CATMAID Connector Viewer",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware, project_id=settings.project_id)
    app.include_router(health_router, tags=["health"])
    app.include_router(viewer_router)
    _register_error_handlers(app)

    return app


def _register_error_handlers(app: FastAPI) -> None:
    def _json(status_code: int, error: str, detail: str) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"error": error, "detail": detail})

    @app.exception_handler(UnknownRelationError)
    @app.exception_handler(UnknownSortFnError)
    async def _bad_choice(_: Request, exc: Exception) -> JSONResponse:
        return _json(422, type(exc).__name__, str(exc))

    @app.exception_handler(httpx.HTTPError)
    @app.exception_handler(CatmaidApiError)
    @app.exception_handler(MalformedSkeletonError)
    async def _upstream(_: Request, exc: Exception) -> JSONResponse:
        log.warning("upstream_failure", error=type(exc).__name__, detail=str(exc))
        return _json(502, type(exc).__name__, str(exc))

    @app.exception_handler(UnregisteredConnectorError)
    async def _invariant(_: Request, exc: Exception) -> JSONResponse:
        log.error("cache_invariant_violated", detail=str(exc))
        return _json(500, type(exc).__name__, str(exc))


# --- Module Notes -----------------------------------------------------------
# App composition stays here; cache semantics live in `cache`, paging in `viewer`.
