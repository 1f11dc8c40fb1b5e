"""
catmaid_connector_viewer.viewer.skeleton_source

Skeleton selection sources consumed by the connector cache.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol


class SkeletonSource(Protocol):
    def get_selected_skeletons(self) -> list[int]: ...


class BasicSkeletonSource:
    """
    In-memory ordered skeleton selection. Each skeleton id appears once; a skeleton can
    be kept in the source but deselected.
    """

    def __init__(self, name: str, skeleton_ids: Iterable[int] = ()) -> None:
        self.name = name
        self._selected: dict[int, bool] = {}
        self.append(skeleton_ids)

    def append(self, skeleton_ids: Iterable[int], *, selected: bool = True) -> None:
        for skid in skeleton_ids:
            self._selected[int(skid)] = selected

    def remove(self, skeleton_ids: Iterable[int]) -> None:
        for skid in skeleton_ids:
            self._selected.pop(int(skid), None)

    def clear(self) -> None:
        self._selected.clear()

    def set_selected(self, skeleton_ids: Iterable[int]) -> None:
        """
        Replace the source content with exactly `skeleton_ids`, all selected.
        """

        self._selected = {}
        self.append(skeleton_ids)

    def get_selected_skeletons(self) -> list[int]:
        return [skid for skid, selected in self._selected.items() if selected]
