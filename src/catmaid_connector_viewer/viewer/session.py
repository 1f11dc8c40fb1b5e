"""
catmaid_connector_viewer.viewer.session

Viewer session: the state behind one connector viewer panel grid.

Responsibilities:
- Own the input skeleton source, the connector cache and the pager.
- Track the current relation type and re-query the cache when inputs change.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from catmaid_connector_viewer.cache.connector_cache import ConnectorViewerCache, SkeletonFetcher
from catmaid_connector_viewer.cache.entities import ConnectorRecord, RelationType, parse_relation
from catmaid_connector_viewer.cache.freshness import DEFAULT_TTL_SECONDS
from catmaid_connector_viewer.cache.sorting import SortFn
from catmaid_connector_viewer.observability.logging import get_logger
from catmaid_connector_viewer.viewer.pagination import ConnectorPager
from catmaid_connector_viewer.viewer.skeleton_source import BasicSkeletonSource

log = get_logger(__name__)


class ViewerSession:
    def __init__(
        self,
        *,
        client: SkeletonFetcher,
        name: str = "Connector Viewer",
        relation: str | RelationType = RelationType.presynaptic_to,
        sort_fn: str | SortFn = SortFn.depth_proportion,
        ttl: float = DEFAULT_TTL_SECONDS,
        skeleton_ids: Iterable[int] = (),
    ) -> None:
        self.skeleton_source = BasicSkeletonSource(f"{name} Input", skeleton_ids)
        self.cache = ConnectorViewerCache(
            client=client,
            skeleton_source=self.skeleton_source,
            ttl=ttl,
            sort_fn=sort_fn,
        )
        self.pager = ConnectorPager()
        self.relation = parse_relation(relation)

    @property
    def order(self) -> list[ConnectorRecord]:
        return list(self.pager.order)

    async def update_with_skeletons(
        self, relation: RelationType | None = None
    ) -> list[ConnectorRecord]:
        """
        Re-query the connector order for the current inputs and go back to the first page.

        `relation` becomes the current relation only once its order has been computed, so a
        failed fetch leaves the previous relation and order in place.
        """

        relation = self.relation if relation is None else relation
        order = await self.cache.update_connector_order(relation)
        self.relation = relation
        self.pager.set_order(order)
        self.pager.change_page(0)
        log.info(
            "viewer_updated",
            relation=str(self.relation),
            sort_fn=str(self.cache.sort_fn),
            skeletons=len(self.skeleton_source.get_selected_skeletons()),
            connectors=len(order),
        )
        return order

    async def set_skeletons(self, skeleton_ids: Iterable[int]) -> list[ConnectorRecord]:
        previous = self.skeleton_source.get_selected_skeletons()
        self.skeleton_source.set_selected(skeleton_ids)
        # Depth and name orderings depend on the selection, not just on cached data.
        self.cache.invalidate_sort()
        try:
            return await self.update_with_skeletons()
        except Exception:
            # The cache reads the selection from the source, so it is set before the
            # fetch and rolled back when the fetch fails.
            self.skeleton_source.set_selected(previous)
            raise

    async def set_relation(self, relation: str | RelationType) -> list[ConnectorRecord]:
        return await self.update_with_skeletons(parse_relation(relation))

    async def set_sort_fn(self, name: str | SortFn) -> list[ConnectorRecord]:
        previous = self.cache.sort_fn
        self.cache.set_sort_fn(name)
        try:
            return await self.update_with_skeletons()
        except Exception:
            self.cache.set_sort_fn(previous)
            raise

    def change_page(self, page: int) -> int:
        return self.pager.change_page(page)

    def set_dimensions(self, rows: int, cols: int) -> None:
        self.pager.set_dimensions(rows, cols)

    def clear_cache(self) -> None:
        self.pager.reset()
        self.cache.clear()

    def clear(self) -> None:
        # Drops both the cached data and the input skeletons.
        self.clear_cache()
        self.skeleton_source.clear()

    async def refresh(self) -> list[ConnectorRecord]:
        self.clear_cache()
        return await self.update_with_skeletons()

    def snapshot(self) -> dict[str, Any]:
        showing = self.pager.showing()
        return {
            "skeleton_ids": self.skeleton_source.get_selected_skeletons(),
            "relation": str(self.relation),
            "sort_fn": str(self.cache.sort_fn),
            "rows": self.pager.rows,
            "cols": self.pager.cols,
            "page": self.pager.current_page,
            "max_page": self.pager.max_page,
            "showing": {"start": showing.start, "stop": showing.stop, "total": showing.total},
            "connectors": [record.as_dict() for record in self.pager.visible()],
        }
