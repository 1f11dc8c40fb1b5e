"""
catmaid_connector_viewer.cache.connector_cache

Cache and database access for the connector viewer.

Responsibilities:
- Keep per-skeleton arbor/name data fresh (TTL-gated re-fetch).
- Maintain the Skeleton / Treenode / Connector maps and one sort index per relation type.
- Serve memoized, display-ready connector orderings for the current skeleton selection.

Known limitations (all solved by `clear()` or `refresh()`):
- A treenode losing its connector association is not picked up during use.
- A change of a treenode's depth on its skeleton is not picked up during use.
"""

from __future__ import annotations

import asyncio
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from catmaid_connector_viewer.cache.arbor import Arbor, max_length
from catmaid_connector_viewer.cache.entities import (
    Connector,
    ConnectorRecord,
    Coords,
    RelationType,
    Skeleton,
    Treenode,
    parse_relation,
    relation_from_code,
)
from catmaid_connector_viewer.cache.errors import (
    MalformedSkeletonError,
    UnregisteredConnectorError,
)
from catmaid_connector_viewer.cache.freshness import (
    DEFAULT_TTL_SECONDS,
    Clock,
    is_fresh,
    monotonic_clock,
)
from catmaid_connector_viewer.cache.sorting import (
    SortFn,
    SortIndex,
    name_collation_key,
    new_indices,
    parse_sort_fn,
)
from catmaid_connector_viewer.observability.logging import get_logger
from catmaid_connector_viewer.viewer.skeleton_source import SkeletonSource

log = get_logger(__name__)


class SkeletonFetcher(Protocol):
    async def compact_detail(self, skeleton_id: int) -> list[Any]: ...

    async def neuron_name(self, skeleton_id: int) -> str: ...


@dataclass(frozen=True, slots=True)
class _ConnectorLink:
    treenode_id: int
    connector_id: int
    relation: RelationType
    coords: Coords
    depth: float


@dataclass(frozen=True, slots=True)
class _ParsedSkeleton:
    skeleton_id: int
    max_length: float
    links: list[_ConnectorLink]


def parse_compact_detail(skeleton_id: int, json: Sequence[Any]) -> _ParsedSkeleton:
    """
    Turn a compact-detail response into connector links with treenode depths.

    Pure function: nothing is written to the cache until the whole payload parsed.
    """

    if not isinstance(json, Sequence) or len(json) < 2:
        raise MalformedSkeletonError(skeleton_id, "expected [treenodes, connectors, ...]")

    arbor = Arbor.from_compact_rows(skeleton_id, json[0])
    distances = arbor.distances_from_root()

    links: list[_ConnectorLink] = []
    for row in json[1]:
        treenode_id, connector_id = int(row[0]), int(row[1])
        if treenode_id not in distances:
            raise MalformedSkeletonError(
                skeleton_id, f"connector {connector_id} links unknown treenode {treenode_id}"
            )
        links.append(
            _ConnectorLink(
                treenode_id=treenode_id,
                connector_id=connector_id,
                relation=relation_from_code(row[2]),
                coords=Coords(float(row[3]), float(row[4]), float(row[5])),
                depth=distances[treenode_id],
            )
        )

    return _ParsedSkeleton(
        skeleton_id=skeleton_id, max_length=max_length(distances), links=links
    )


class ConnectorViewerCache:
    def __init__(
        self,
        *,
        client: SkeletonFetcher,
        skeleton_source: SkeletonSource,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Clock = monotonic_clock,
        sort_fn: str | SortFn = SortFn.depth_proportion,
    ) -> None:
        self._client = client
        self._source = skeleton_source
        self._ttl = ttl
        self._clock = clock
        self._sort_fn = parse_sort_fn(sort_fn)

        self._skeletons: dict[int, Skeleton] = {}
        self._treenodes: dict[int, Treenode] = {}
        self._connectors: dict[int, Connector] = {}
        self._sorting: dict[RelationType, SortIndex] = new_indices()

        # Bumped by clear(); fetches started under an older generation are discarded.
        self._generation = 0

    # -- read-only views -----------------------------------------------------

    @property
    def skeletons(self) -> Mapping[int, Skeleton]:
        return self._skeletons

    @property
    def treenodes(self) -> Mapping[int, Treenode]:
        return self._treenodes

    @property
    def connectors(self) -> Mapping[int, Connector]:
        return self._connectors

    @property
    def sort_fn(self) -> SortFn:
        return self._sort_fn

    @property
    def generation(self) -> int:
        return self._generation

    def sort_index(self, relation: str | RelationType) -> SortIndex:
        return self._sorting[parse_relation(relation)]

    # -- facade ----------------------------------------------------------------

    def clear(self) -> None:
        # The comparator choice survives a clear.
        self._skeletons = {}
        self._treenodes = {}
        self._connectors = {}
        self._sorting = new_indices()
        self._generation += 1
        log.info("cache_cleared", generation=self._generation)

    async def refresh(self) -> None:
        self.clear()
        await self.ensure_valid_cache()

    def set_sort_fn(self, name: str | SortFn) -> None:
        # Deferred: each relation's index notices the switch on its next access.
        self._sort_fn = parse_sort_fn(name)
        log.debug("sort_fn_set", sort_fn=str(self._sort_fn))

    def invalidate_sort(self, relation: str | RelationType | None = None) -> None:
        """
        Force a re-sort on next access, for one relation or all of them.

        Needed when the selection changes: selection-dependent comparators
        (depth, skeleton name) are otherwise reused from the previous selection.
        """

        if relation is None:
            for index in self._sorting.values():
                index.invalidate()
        else:
            self._sorting[parse_relation(relation)].invalidate()

    async def update_connector_order(
        self, relation: str | RelationType
    ) -> list[ConnectorRecord]:
        """
        Return the connectors of the current selection under `relation`, ordered by the
        active sort function.
        """

        relation = parse_relation(relation)
        await self.ensure_valid_cache()

        selected = frozenset(self._source.get_selected_skeletons())
        index = self._sorting[relation]
        if index.is_valid_for(self._sort_fn):
            order = list(index.order)
        else:
            log.debug(
                "connector_order_resort",
                relation=str(relation),
                sort_fn=str(self._sort_fn),
                previous_sort_fn=str(index.sort_fn) if index.sort_fn else None,
                size=len(index.order),
            )
            order = index.resort(self._sort_fn, self, selected)

        return [self._project(connector_id, relation, selected) for connector_id in order]

    # -- freshness / fetching ---------------------------------------------------

    async def ensure_valid_cache(self) -> None:
        """
        Ensure every currently selected skeleton has a recent representation.
        """

        selected = list(self._source.get_selected_skeletons())
        await asyncio.gather(*(self.ensure_valid_cache_for_skeleton(s) for s in selected))

    async def ensure_valid_cache_for_skeleton(self, skeleton_id: int) -> None:
        generation = self._generation
        skeleton = self._skeletons.get(skeleton_id)

        if skeleton is None or not is_fresh(skeleton.arbor_timestamp, self._ttl, self._clock()):
            log.debug("skeleton_fetch_start", skeleton_id=skeleton_id, generation=generation)
            json = await self._client.compact_detail(skeleton_id)
            parsed = parse_compact_detail(skeleton_id, json)
            if generation != self._generation:
                log.info(
                    "skeleton_fetch_discarded",
                    skeleton_id=skeleton_id,
                    generation=generation,
                    current_generation=self._generation,
                )
                return
            self._apply(parsed, completed_at=self._clock())
            log.info(
                "skeleton_fetched",
                skeleton_id=skeleton_id,
                links=len(parsed.links),
                max_length=parsed.max_length,
            )

        # Arbor data is fully written before the name step starts.
        await self.ensure_valid_cache_for_skeleton_name(skeleton_id)

    async def ensure_valid_cache_for_skeleton_name(self, skeleton_id: int) -> None:
        generation = self._generation
        skeleton = self._skeletons.get(skeleton_id)
        if skeleton is None:
            # Cleared while the arbor fetch was in flight.
            return
        # An empty name is treated like a missing one and fetched again.
        if skeleton.name and is_fresh(
            skeleton.name_timestamp, self._ttl, self._clock()
        ):
            return

        name = await self._client.neuron_name(skeleton_id)
        if generation != self._generation:
            log.info("skeleton_name_discarded", skeleton_id=skeleton_id, generation=generation)
            return
        skeleton.name = name
        skeleton.name_timestamp = self._clock()

    def _apply(self, parsed: _ParsedSkeleton, *, completed_at: float) -> None:
        skeleton = self._skeletons.get(parsed.skeleton_id)
        if skeleton is None:
            skeleton = self._skeletons[parsed.skeleton_id] = Skeleton(id=parsed.skeleton_id)
        skeleton.arbor_timestamp = completed_at
        skeleton.max_length = parsed.max_length

        for link in parsed.links:
            connector = self._connectors.get(link.connector_id)
            if connector is None:
                connector = Connector(id=link.connector_id, coords=link.coords)
                self._connectors[link.connector_id] = connector
            # Last write wins; a connector's location is the same from every skeleton.
            connector.coords = link.coords
            connector.relations[link.relation].add(link.treenode_id)

            self._sorting[link.relation].add(link.connector_id)

            self._treenodes[link.treenode_id] = Treenode(
                id=link.treenode_id, skeleton_id=parsed.skeleton_id, depth=link.depth
            )

    # -- comparator lookups -----------------------------------------------------

    def _connector(self, connector_id: int) -> Connector:
        connector = self._connectors.get(connector_id)
        if connector is None:
            raise UnregisteredConnectorError(connector_id)
        return connector

    def _qualifying(
        self, connector_id: int, relation: RelationType, selected: Collection[int]
    ) -> list[Treenode]:
        connector = self._connector(connector_id)
        return [
            treenode
            for treenode in (self._treenodes[t] for t in connector.treenodes(relation))
            if treenode.skeleton_id in selected
        ]

    def min_depth(
        self,
        connector_id: int,
        relation: RelationType,
        selected: Collection[int],
        *,
        proportional: bool,
    ) -> float:
        """
        Smallest depth of the connector on any selected skeleton linked by `relation`.

        Proportional depths are divided by the skeleton's max length. A connector with no
        qualifying treenode yields +inf so it sorts last.
        """

        min_depth = float("inf")
        for treenode in self._qualifying(connector_id, relation, selected):
            depth = treenode.depth
            if proportional:
                length = self._skeletons[treenode.skeleton_id].max_length
                depth = depth / length if length > 0 else 0.0
            min_depth = min(min_depth, depth)
        return min_depth

    def first_skeleton_name(
        self, connector_id: int, relation: RelationType, selected: Collection[int]
    ) -> str | None:
        names = {
            self._display_name(treenode.skeleton_id)
            for treenode in self._qualifying(connector_id, relation, selected)
        }
        if not names:
            return None
        return min(names, key=name_collation_key)

    def _display_name(self, skeleton_id: int) -> str:
        name = self._skeletons[skeleton_id].name
        return name if name is not None else str(skeleton_id)

    def _project(
        self, connector_id: int, relation: RelationType, selected: Collection[int]
    ) -> ConnectorRecord:
        connector = self._connector(connector_id)
        names = {
            self._display_name(treenode.skeleton_id)
            for treenode in self._qualifying(connector_id, relation, selected)
        }
        # Sorted so the record is deterministic.
        return ConnectorRecord(conn_id=connector.id, coords=connector.coords, skel_names=sorted(names))


# --- Module Notes -----------------------------------------------------------
# All mutation happens on the event loop between awaits, so no locking is needed.
# There is no request de-duplication: two concurrent calls for the same stale skeleton
# issue two fetches, which write the same data.
