from __future__ import annotations

import httpx
import pytest

from catmaid_connector_viewer.cache.errors import UnknownRelationError, UnknownSortFnError
from catmaid_connector_viewer.catmaid_client.http import CatmaidClient
from catmaid_connector_viewer.viewer.session import ViewerSession
from catmaid_connector_viewer.viewer.skeleton_source import BasicSkeletonSource
from conftest import FakeCatmaid


@pytest.fixture
def viewer(client: CatmaidClient) -> ViewerSession:
    return ViewerSession(client=client)


@pytest.mark.asyncio
async def test_selection_change_resorts_with_new_selection(viewer: ViewerSession) -> None:
    order = await viewer.set_skeletons([1, 2])
    assert [r.conn_id for r in order] == [20, 10]

    # With only skeleton 1 selected C20 has no depth and moves to the end.
    order = await viewer.set_skeletons([1])
    assert [r.conn_id for r in order] == [10, 20]


@pytest.mark.asyncio
async def test_relation_and_sort_changes(viewer: ViewerSession) -> None:
    await viewer.set_skeletons([1, 2, 3])

    order = await viewer.set_relation("gapjunction_with")
    assert [r.conn_id for r in order] == [50]
    assert order[0].skel_names == ["alpha"]

    await viewer.set_relation("presynaptic_to")
    order = await viewer.set_sort_fn("connIdSort")
    assert [r.conn_id for r in order] == [10, 20, 60]

    with pytest.raises(UnknownRelationError):
        await viewer.set_relation("adjacent_to")


@pytest.mark.asyncio
async def test_update_resets_to_first_page(viewer: ViewerSession) -> None:
    viewer.set_dimensions(1, 1)
    await viewer.set_skeletons([1, 2])
    assert viewer.change_page(1) == 1

    await viewer.update_with_skeletons()

    snapshot = viewer.snapshot()
    assert snapshot["page"] == 0
    assert snapshot["max_page"] == 2
    assert [c["conn_id"] for c in snapshot["connectors"]] == [20]


@pytest.mark.asyncio
async def test_clear_and_refresh(viewer: ViewerSession, fake_catmaid: FakeCatmaid) -> None:
    await viewer.set_skeletons([1])

    await viewer.refresh()
    assert fake_catmaid.compact_fetches(1) == 2
    assert [r.conn_id for r in viewer.order] == [10]

    viewer.clear()
    assert viewer.order == []
    assert viewer.skeleton_source.get_selected_skeletons() == []
    assert viewer.cache.skeletons == {}


@pytest.mark.asyncio
async def test_rejected_sort_fn_keeps_current_view(viewer: ViewerSession) -> None:
    viewer.set_dimensions(1, 1)
    await viewer.set_skeletons([1, 2])
    viewer.change_page(1)

    with pytest.raises(UnknownSortFnError):
        await viewer.set_sort_fn("bogus")

    assert [r.conn_id for r in viewer.order] == [20, 10]
    snapshot = viewer.snapshot()
    assert snapshot["sort_fn"] == "depthProportionSort"
    assert snapshot["page"] == 1


@pytest.mark.asyncio
async def test_failed_fetch_keeps_previous_selection_and_relation(
    viewer: ViewerSession, fake_catmaid: FakeCatmaid
) -> None:
    await viewer.set_skeletons([1])
    fake_catmaid.failing = {2}

    with pytest.raises(httpx.HTTPStatusError):
        await viewer.set_skeletons([1, 2])
    assert viewer.skeleton_source.get_selected_skeletons() == [1]
    assert [r.conn_id for r in viewer.order] == [10]

    viewer.cache.clear()
    fake_catmaid.failing = {1}
    with pytest.raises(httpx.HTTPStatusError):
        await viewer.set_relation("abutting")
    with pytest.raises(httpx.HTTPStatusError):
        await viewer.set_sort_fn("connIdSort")

    snapshot = viewer.snapshot()
    assert snapshot["relation"] == "presynaptic_to"
    assert snapshot["sort_fn"] == "depthProportionSort"
    assert [c["conn_id"] for c in snapshot["connectors"]] == [10]

def test_skeleton_source_keeps_order_and_selection() -> None:
    source = BasicSkeletonSource("input", [3, 1])
    source.append([2], selected=False)
    source.append([1])

    assert source.get_selected_skeletons() == [3, 1]

    source.remove([3])
    source.set_selected([5, 4])
    assert source.get_selected_skeletons() == [5, 4]
