"""
catmaid_connector_viewer.cache.sorting

Per-relation sort indices and the closed set of connector comparators.

Responsibilities:
- Name the available comparators (`SortFn`) and dispatch on them explicitly.
- Hold one `SortIndex` per relation type: known connector ids, last order, and
  a CLEAN/DIRTY state plus the comparator tag the order was computed with.
"""

from __future__ import annotations

import enum
import locale
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Protocol

from catmaid_connector_viewer.cache.entities import RelationType
from catmaid_connector_viewer.cache.errors import UnknownSortFnError


class SortFn(enum.StrEnum):
    depth_proportion = "depthProportionSort"
    depth = "depthSort"
    conn_id = "connIdSort"
    skel_name = "skelNameSort"
    null = "nullSort"

    @property
    def title(self) -> str:
        return _TITLES[self]


_TITLES = {
    SortFn.depth_proportion: "Connector depth (proportion)",
    SortFn.depth: "Connector depth (absolute)",
    SortFn.conn_id: "Connector ID",
    SortFn.skel_name: "Skeleton name",
    SortFn.null: "None",
}


def parse_sort_fn(name: str | SortFn) -> SortFn:
    try:
        return SortFn(name)
    except ValueError:
        raise UnknownSortFnError(name) from None


class ConnectorLookup(Protocol):
    """
    The comparator-facing view of the entity store.
    """

    def min_depth(
        self,
        connector_id: int,
        relation: RelationType,
        selected: Collection[int],
        *,
        proportional: bool,
    ) -> float: ...

    def first_skeleton_name(
        self, connector_id: int, relation: RelationType, selected: Collection[int]
    ) -> str | None: ...


def _cmp(a: float, b: float) -> int:
    # Sign-only comparison; `inf - inf` would be NaN.
    return (a > b) - (a < b)


def name_collation_key(name: str) -> tuple[str, str]:
    """
    Sort key for skeleton names: letter case only breaks ties, and everything else
    follows the process `LC_COLLATE` (see `apply_collation_locale`).
    """

    return locale.strxfrm(name.casefold()), locale.strxfrm(name)


def apply_collation_locale(name: str) -> None:
    """
    Switch `LC_COLLATE` for skeleton name sorting. An empty name selects the locale
    from the environment (`LC_ALL`, `LC_COLLATE`, `LANG`).
    """

    locale.setlocale(locale.LC_COLLATE, name)


def compare(
    sort_fn: SortFn,
    lookup: ConnectorLookup,
    conn_id1: int,
    conn_id2: int,
    relation: RelationType,
    selected: Collection[int],
) -> int:
    match sort_fn:
        case SortFn.conn_id:
            return _cmp(conn_id1, conn_id2)
        case SortFn.null:
            return 0
        case SortFn.depth | SortFn.depth_proportion:
            proportional = sort_fn is SortFn.depth_proportion
            return _cmp(
                lookup.min_depth(conn_id1, relation, selected, proportional=proportional),
                lookup.min_depth(conn_id2, relation, selected, proportional=proportional),
            )
        case SortFn.skel_name:
            name1 = lookup.first_skeleton_name(conn_id1, relation, selected)
            name2 = lookup.first_skeleton_name(conn_id2, relation, selected)
            # Connectors without a selected skeleton sort last, like +inf depth.
            if name1 is None or name2 is None:
                return (name1 is None) - (name2 is None)
            key1, key2 = name_collation_key(name1), name_collation_key(name2)
            return (key1 > key2) - (key1 < key2)
    raise UnknownSortFnError(sort_fn)


def sort_connectors(
    sort_fn: SortFn,
    lookup: ConnectorLookup,
    connector_ids: Sequence[int],
    relation: RelationType,
    selected: Collection[int],
) -> list[int]:
    """
    Sort `connector_ids` with the given comparator (stable, so ties keep input order).
    """

    if sort_fn is SortFn.null:
        return list(connector_ids)
    key = cmp_to_key(lambda a, b: compare(sort_fn, lookup, a, b, relation, selected))
    return sorted(connector_ids, key=key)


class IndexState(enum.StrEnum):
    clean = "CLEAN"
    dirty = "DIRTY"


@dataclass(slots=True)
class SortIndex:
    relation: RelationType
    sort_fn: SortFn | None = None
    order: list[int] = field(default_factory=list)
    state: IndexState = IndexState.dirty
    _known: set[int] = field(default_factory=set)

    @property
    def connector_ids(self) -> frozenset[int]:
        return frozenset(self._known)

    def add(self, connector_id: int) -> bool:
        """
        Register a connector id; any new id forces the index dirty.
        """

        if connector_id in self._known:
            return False
        self._known.add(connector_id)
        self.order.append(connector_id)
        self.state = IndexState.dirty
        return True

    def invalidate(self) -> None:
        self.state = IndexState.dirty

    def is_valid_for(self, sort_fn: SortFn) -> bool:
        return self.state is IndexState.clean and self.sort_fn is sort_fn

    def resort(
        self, sort_fn: SortFn, lookup: ConnectorLookup, selected: Collection[int]
    ) -> list[int]:
        self.order = sort_connectors(sort_fn, lookup, self.order, self.relation, selected)
        self.sort_fn = sort_fn
        self.state = IndexState.clean
        return list(self.order)


def new_indices() -> dict[RelationType, SortIndex]:
    return {r: SortIndex(relation=r) for r in RelationType}