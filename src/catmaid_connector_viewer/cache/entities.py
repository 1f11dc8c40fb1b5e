"""
catmaid_connector_viewer.cache.entities

Entity store types for the connector cache.

Responsibilities:
- Define Skeleton / Treenode / Connector records and the relation-type vocabulary.
- Map CATMAID relation codes onto relation types.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from catmaid_connector_viewer.cache.errors import UnknownRelationError


class RelationType(enum.StrEnum):
    presynaptic_to = "presynaptic_to"
    postsynaptic_to = "postsynaptic_to"
    gapjunction_with = "gapjunction_with"
    abutting = "abutting"


# Relation codes as returned in compact-detail connector rows.
RELATION_CODES: dict[int, RelationType] = {
    0: RelationType.presynaptic_to,
    1: RelationType.postsynaptic_to,
    2: RelationType.gapjunction_with,
    -1: RelationType.abutting,
}


def relation_from_code(code: int) -> RelationType:
    try:
        return RELATION_CODES[int(code)]
    except (KeyError, TypeError, ValueError):
        raise UnknownRelationError(code) from None


def parse_relation(relation: str | RelationType) -> RelationType:
    """
    Validate a relation name. Anything outside the four kinds is a programming error.
    """

    try:
        return RelationType(relation)
    except ValueError:
        raise UnknownRelationError(relation) from None


@dataclass(frozen=True, slots=True)
class Coords:
    x: float
    y: float
    z: float

    def as_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass(slots=True)
class Skeleton:
    id: int
    name: str | None = None
    # None means "never fetched"; is_fresh treats it as stale.
    name_timestamp: float | None = None
    arbor_timestamp: float | None = None
    max_length: float = 0.0


@dataclass(frozen=True, slots=True)
class Treenode:
    id: int
    skeleton_id: int
    depth: float


def _empty_relations() -> dict[RelationType, set[int]]:
    return {r: set() for r in RelationType}


@dataclass(slots=True)
class Connector:
    id: int
    coords: Coords
    relations: dict[RelationType, set[int]] = field(default_factory=_empty_relations)

    def treenodes(self, relation: RelationType) -> set[int]:
        return self.relations[relation]


@dataclass(frozen=True, slots=True)
class ConnectorRecord:
    """
    Display-ready projection of one connector for a relation type.
    """

    conn_id: int
    coords: Coords
    skel_names: list[str]

    def as_dict(self) -> dict[str, object]:
        return {"conn_id": self.conn_id, "coords": self.coords.as_dict(), "skel_names": self.skel_names}
