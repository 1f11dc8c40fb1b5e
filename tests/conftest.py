from __future__ import annotations

import asyncio
import re
from typing import Any

import httpx
import pytest
import pytest_asyncio

from catmaid_connector_viewer.cache.connector_cache import ConnectorViewerCache
from catmaid_connector_viewer.catmaid_client.http import CatmaidClient
from catmaid_connector_viewer.settings import Settings
from catmaid_connector_viewer.viewer.skeleton_source import BasicSkeletonSource

BASE_URL = "http://catmaid.test"
PROJECT_ID = 1

PRE, POST, GAP, ABUT = 0, 1, 2, -1

_COMPACT = re.compile(r"/(\d+)/skeletons/(\d+)/compact-detail")
_NAME = re.compile(r"/(\d+)/skeleton/(\d+)/neuronname")


def tn(node_id: int, parent_id: int | None, x: float, y: float, z: float) -> list[Any]:
    # Compact-detail treenode row: id, parent, user, x, y, z, radius, confidence
    return [node_id, parent_id, 1, x, y, z, -1, 5]


def cn(
    treenode_id: int, connector_id: int, code: int, xyz: tuple[float, float, float]
) -> list[Any]:
    return [treenode_id, connector_id, code, *xyz]


class FakeCatmaid:
    """
    In-memory CATMAID serving compact-detail and neuronname for a set of skeletons.
    """

    def __init__(self) -> None:
        self.skeletons: dict[int, tuple[list[Any], list[Any]]] = {}
        self.names: dict[int, str] = {}
        self.requests: list[httpx.Request] = []
        self.failing: set[int] = set()
        self.gate: asyncio.Event | None = None

    def add_skeleton(
        self, skid: int, name: str, treenodes: list[Any], connectors: list[Any]
    ) -> None:
        self.skeletons[skid] = (treenodes, connectors)
        self.names[skid] = name

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def compact_fetches(self, skid: int) -> int:
        return self.paths().count(f"/{PROJECT_ID}/skeletons/{skid}/compact-detail")

    def name_fetches(self, skid: int) -> int:
        return self.paths().count(f"/{PROJECT_ID}/skeleton/{skid}/neuronname")

    def connector_ids(self, skids: list[int], code: int) -> set[int]:
        return {
            row[1] for skid in skids for row in self.skeletons[skid][1] if row[2] == code
        }

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()

        path = request.url.path
        if m := _COMPACT.fullmatch(path):
            skid = int(m.group(2))
            if skid in self.failing or skid not in self.skeletons:
                return httpx.Response(500, json={"detail": "boom"})
            treenodes, connectors = self.skeletons[skid]
            return httpx.Response(200, json=[treenodes, connectors, [], [], []])
        if m := _NAME.fullmatch(path):
            skid = int(m.group(2))
            if skid in self.failing or skid not in self.names:
                return httpx.Response(500, json={"detail": "boom"})
            return httpx.Response(200, json={"neuronname": self.names[skid], "skeleton_id": skid})
        return httpx.Response(404, json={"detail": "not found"})


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def populate(fake: FakeCatmaid) -> None:
    # Skeleton 1: T11 depth 5, max length 10.
    fake.add_skeleton(
        1,
        "neuron A",
        [tn(100, None, 0, 0, 0), tn(11, 100, 5, 0, 0), tn(12, 11, 10, 0, 0)],
        [
            cn(11, 10, PRE, (1, 1, 1)),
            cn(12, 30, ABUT, (7, 7, 7)),
            cn(100, 40, POST, (2, 2, 2)),
        ],
    )
    # Skeleton 2: T21 depth 2, T22 depth 1, max length 20.
    fake.add_skeleton(
        2,
        "neuron B",
        [
            tn(200, None, 0, 0, 0),
            tn(21, 200, 0, 2, 0),
            tn(22, 200, 0, 0, 1),
            tn(23, 200, 0, 0, 20),
        ],
        [
            cn(21, 10, PRE, (1, 1, 1)),
            cn(22, 20, PRE, (3, 3, 3)),
            cn(23, 30, ABUT, (7, 7, 7)),
        ],
    )
    # Skeleton 3: T31 depth 5 == max length.
    fake.add_skeleton(
        3,
        "alpha",
        [tn(300, None, 0, 0, 0), tn(31, 300, 3, 4, 0)],
        [cn(31, 50, GAP, (9, 9, 9)), cn(31, 60, PRE, (4, 4, 4))],
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        env="test",
        catmaid_base_url=BASE_URL,
        project_id=PROJECT_ID,
        api_token="test-token",
        log_level="WARNING",
    )


@pytest.fixture
def fake_catmaid() -> FakeCatmaid:
    fake = FakeCatmaid()
    populate(fake)
    return fake


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def http(fake_catmaid: FakeCatmaid):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(fake_catmaid.handler), base_url=BASE_URL
    ) as client:
        yield client


@pytest.fixture
def client(settings: Settings, http: httpx.AsyncClient) -> CatmaidClient:
    return CatmaidClient(settings=settings, http=http)


@pytest.fixture
def source() -> BasicSkeletonSource:
    return BasicSkeletonSource("test", [1, 2])


@pytest.fixture
def cache(
    client: CatmaidClient, source: BasicSkeletonSource, clock: FakeClock
) -> ConnectorViewerCache:
    return ConnectorViewerCache(client=client, skeleton_source=source, clock=clock)
