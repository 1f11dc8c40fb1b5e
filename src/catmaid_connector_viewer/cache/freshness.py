"""
catmaid_connector_viewer.cache.freshness

Time-to-live policy for cached skeleton data.
"""

from __future__ import annotations

import time
from collections.abc import Callable

Clock = Callable[[], float]

DEFAULT_TTL_SECONDS = 5 * 60


def monotonic_clock() -> float:
    return time.monotonic()


def is_fresh(timestamp: float | None, ttl: float, now: float) -> bool:
    # No jitter and no negative caching: a missing timestamp is always stale.
    if timestamp is None:
        return False
    return now - timestamp < ttl
