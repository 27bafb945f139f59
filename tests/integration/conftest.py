"""Fixtures wiring real informers and the real coordinator for integration tests.

The coordinator lists and watches through ``FakeListWatch`` so the full read
path (informer → store → lister → handler) runs without a cluster.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from kuberoute.cache.coordinator import CacheCoordinator
from kuberoute.handler import ResourceHandler
from kuberoute.registry import DEFAULT_REGISTRY
from tests.conftest import FakeListWatch, RecordingTransport, make_node, make_pod


@pytest.fixture()
def list_watch() -> FakeListWatch:
    return FakeListWatch(
        {
            "pods": [
                make_pod("p1", "ns1", labels={"app": "web"}),
                make_pod("p2", "ns1", labels={"app": "api"}),
                make_pod("p1", "ns3", labels={"app": "web"}),
            ],
            "nodes": [make_node("node-a", labels={"zone": "a"})],
        }
    )


@pytest.fixture()
async def coordinator(list_watch: FakeListWatch) -> AsyncIterator[CacheCoordinator]:
    cache = CacheCoordinator(list_watch, resync_seconds=600)
    cache.register(DEFAULT_REGISTRY["Pod"])
    cache.register(DEFAULT_REGISTRY["Node"])
    await cache.start()
    assert await cache.wait_for_sync(timeout=2.0)
    try:
        yield cache
    finally:
        await cache.stop()


@pytest.fixture()
def live_handler(transport: RecordingTransport, coordinator: CacheCoordinator) -> ResourceHandler:
    return ResourceHandler(transport, coordinator)
