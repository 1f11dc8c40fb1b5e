"""
catmaid_connector_viewer.api.routers.viewer

Viewer endpoints: selection, relation, sorting, paging, cache clear/refresh.

Every endpoint returns the viewer snapshot (current page of connector records plus
paging info), so a client can re-render after any change.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from catmaid_connector_viewer.api.deps import viewer_session
from catmaid_connector_viewer.viewer.pagination import MAX_COLS, MAX_ROWS
from catmaid_connector_viewer.viewer.session import ViewerSession

router = APIRouter(prefix="/v1/viewer", tags=["viewer"])


class SkeletonsRequest(BaseModel):
    skeleton_ids: list[int] = Field(default_factory=list)


class RelationRequest(BaseModel):
    relation: str


class SortRequest(BaseModel):
    sort_fn: str


class PageRequest(BaseModel):
    # Zero-indexed; out-of-range pages fall back to the first page.
    page: int


class DimensionsRequest(BaseModel):
    rows: int = Field(ge=1, le=MAX_ROWS)
    cols: int = Field(ge=1, le=MAX_COLS)


@router.get("")
async def get_viewer(viewer: ViewerSession = Depends(viewer_session)) -> dict[str, Any]:
    return viewer.snapshot()


@router.put("/skeletons")
async def set_skeletons(
    body: SkeletonsRequest, viewer: ViewerSession = Depends(viewer_session)
) -> dict[str, Any]:
    await viewer.set_skeletons(body.skeleton_ids)
    return viewer.snapshot()


@router.put("/relation")
async def set_relation(
    body: RelationRequest, viewer: ViewerSession = Depends(viewer_session)
) -> dict[str, Any]:
    await viewer.set_relation(body.relation)
    return viewer.snapshot()


@router.put("/sort")
async def set_sort(
    body: SortRequest, viewer: ViewerSession = Depends(viewer_session)
) -> dict[str, Any]:
    await viewer.set_sort_fn(body.sort_fn)
    return viewer.snapshot()


@router.put("/page")
async def change_page(
    body: PageRequest, viewer: ViewerSession = Depends(viewer_session)
) -> dict[str, Any]:
    viewer.change_page(body.page)
    return viewer.snapshot()


@router.put("/dimensions")
async def set_dimensions(
    body: DimensionsRequest, viewer: ViewerSession = Depends(viewer_session)
) -> dict[str, Any]:
    try:
        viewer.set_dimensions(body.rows, body.cols)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return viewer.snapshot()


@router.post("/clear")
async def clear(viewer: ViewerSession = Depends(viewer_session)) -> dict[str, Any]:
    # Like the widget's "Clear" button: drops cached data and the input skeletons.
    viewer.clear()
    return viewer.snapshot()


@router.post("/refresh")
async def refresh(viewer: ViewerSession = Depends(viewer_session)) -> dict[str, Any]:
    await viewer.refresh()
    return viewer.snapshot()
