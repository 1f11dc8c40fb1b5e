"""
catmaid_connector_viewer.api.routers.health

Health and readiness endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", response_model=None)
async def readyz(request: Request) -> dict[str, str] | JSONResponse:
    # Ready once the lifespan has built the CATMAID client and viewer session.
    if getattr(request.app.state, "viewer", None) is None:
        return JSONResponse(status_code=503, content={"status": "starting"})
    return {"status": "ready"}
