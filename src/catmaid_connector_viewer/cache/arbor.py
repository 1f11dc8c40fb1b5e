"""
catmaid_connector_viewer.cache.arbor

Arbor (tree) construction from compact-skeleton treenode rows.

Responsibilities:
- Build parent/child structure from `[id, parent_id, user_id, x, y, z, ...]` rows.
- Compute root-to-node distances as summed 3D Euclidean edge lengths.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from catmaid_connector_viewer.cache.errors import MalformedSkeletonError


@dataclass(slots=True)
class Arbor:
    skeleton_id: int
    root: int | None = None
    positions: dict[int, tuple[float, float, float]] = field(default_factory=dict)
    children: dict[int, list[int]] = field(default_factory=dict)

    @classmethod
    def from_compact_rows(cls, skeleton_id: int, rows: Iterable[Sequence[Any]]) -> Arbor:
        arbor = cls(skeleton_id=skeleton_id)
        parents: dict[int, int | None] = {}
        for row in rows:
            node_id = int(row[0])
            parent_id = None if row[1] is None else int(row[1])
            parents[node_id] = parent_id
            arbor.positions[node_id] = (float(row[3]), float(row[4]), float(row[5]))

        for node_id, parent_id in parents.items():
            if parent_id is None:
                if arbor.root is not None:
                    raise MalformedSkeletonError(skeleton_id, "more than one root node")
                arbor.root = node_id
                continue
            if parent_id not in parents:
                raise MalformedSkeletonError(
                    skeleton_id, f"treenode {node_id} has unknown parent {parent_id}"
                )
            arbor.children.setdefault(parent_id, []).append(node_id)

        if parents and arbor.root is None:
            raise MalformedSkeletonError(skeleton_id, "no root node")
        return arbor

    def edge_length(self, child: int, parent: int) -> float:
        return math.dist(self.positions[child], self.positions[parent])

    def distances_from_root(self) -> dict[int, float]:
        """
        Geodesic distance of every reachable node from the root (root itself is 0).
        """

        if self.root is None:
            return {}
        distances = {self.root: 0.0}
        queue = deque([self.root])
        while queue:
            parent = queue.popleft()
            base = distances[parent]
            for child in self.children.get(parent, ()):
                distances[child] = base + self.edge_length(child, parent)
                queue.append(child)
        return distances


def max_length(distances: dict[int, float]) -> float:
    return max(distances.values(), default=0.0)
