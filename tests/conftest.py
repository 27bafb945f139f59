"""Shared fakes and fixtures for kuberoute tests.

Provides collaborator fakes that satisfy the handler's protocols so tests can
exercise full request paths without touching a real Kubernetes cluster:

    RecordingTransport -- TransportClient that records calls and echoes bodies.
    StaticCache        -- CacheCoordinator over pre-populated stores.
    FakeListWatch      -- ListWatchClient driving real informers from queues.
"""

from __future__ import annotations

import asyncio
import json
from collections import defaultdict
from collections.abc import AsyncIterator, Mapping
from typing import Any

import pytest

from kuberoute.cache.lister import Lister
from kuberoute.cache.store import ObjectStore
from kuberoute.errors import CacheUnavailable, TransportError
from kuberoute.handler import ResourceHandler
from kuberoute.models.resources import (
    CacheReadiness,
    GroupVersionResource,
    ResourceDescriptor,
    TypedObject,
)
from kuberoute.registry import DEFAULT_REGISTRY

# ---------------------------------------------------------------------------
# Object factories
# ---------------------------------------------------------------------------


def make_pod(
    name: str,
    namespace: str = "default",
    labels: dict[str, str] | None = None,
    rv: str = "1",
    phase: str = "Running",
) -> dict[str, Any]:
    """Return a raw Pod as it appears in a list response item."""
    return {
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": f"uid-{namespace}-{name}",
            "resourceVersion": rv,
            "labels": labels or {},
            "annotations": {},
        },
        "spec": {"containers": [{"name": "app", "image": "nginx:1.25"}]},
        "status": {"phase": phase},
    }


def make_node(name: str, labels: dict[str, str] | None = None, rv: str = "1") -> dict[str, Any]:
    return {
        "metadata": {
            "name": name,
            "uid": f"uid-{name}",
            "resourceVersion": rv,
            "labels": labels or {},
        },
        "status": {"conditions": [{"type": "Ready", "status": "True"}]},
    }


def make_deployment(name: str, namespace: str = "default", replicas: int = 1) -> dict[str, Any]:
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace, "labels": {"app": name}},
        "spec": {"replicas": replicas},
    }


# ---------------------------------------------------------------------------
# Transport fake
# ---------------------------------------------------------------------------


class RecordingTransport:
    """TransportClient that records each request and echoes the body back.

    Set ``error`` to make every call raise it instead.
    """

    def __init__(self, error: TransportError | None = None) -> None:
        self.calls: list[dict[str, Any]] = []
        self.error = error

    async def request(
        self,
        method: str,
        descriptor: ResourceDescriptor,
        *,
        namespace: str | None = None,
        name: str | None = None,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> bytes:
        self.calls.append(
            {
                "method": method,
                "resource": descriptor.resource,
                "namespace": namespace,
                "name": name,
                "body": body,
                "headers": dict(headers or {}),
                "params": dict(params or {}),
            }
        )
        if self.error is not None:
            raise self.error
        if method == "DELETE":
            return json.dumps({"kind": "Status", "status": "Success"}).encode()
        return body or b"{}"


# ---------------------------------------------------------------------------
# Cache fakes
# ---------------------------------------------------------------------------


class StaticCache:
    """CacheCoordinator over stores loaded up front; no background sync."""

    def __init__(self) -> None:
        self._entries: dict[GroupVersionResource, tuple[ResourceDescriptor, ObjectStore]] = {}
        self.accessor_calls: list[GroupVersionResource] = []

    def load(self, kind: str, objects: list[dict[str, Any]]) -> None:
        descriptor = DEFAULT_REGISTRY[kind]
        store = ObjectStore()
        store.replace(TypedObject.from_dict(kind, obj, descriptor.gvr.api_version) for obj in objects)
        self._entries[descriptor.gvr] = (descriptor, store)

    def accessor_for(self, gvr: GroupVersionResource) -> Lister:
        self.accessor_calls.append(gvr)
        entry = self._entries.get(gvr)
        if entry is None:
            raise CacheUnavailable(gvr, "resource is not indexed")
        return Lister(*entry)

    def readiness(self) -> CacheReadiness:
        return CacheReadiness.READY if self._entries else CacheReadiness.WARMING

    def indexed_kinds(self) -> list[str]:
        return sorted(d.kind for d, _ in self._entries.values())

    def synced_kinds(self) -> list[str]:
        return self.indexed_kinds()

    def object_counts(self) -> dict[str, int]:
        return {d.kind: len(s) for d, s in self._entries.values()}


class FakeListWatch:
    """ListWatchClient serving canned lists and queued watch events.

    ``push(resource, type, obj)`` feeds a running watch; pushing ``None`` via
    ``close(resource)`` ends the current watch stream.
    """

    def __init__(self, objects: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.objects = objects or {}
        self.list_calls: list[str] = []
        self.watch_calls: list[tuple[str, str]] = []
        self.list_errors: dict[str, list[TransportError]] = defaultdict(list)
        self.resource_version = "100"
        self._queues: dict[str, asyncio.Queue[dict[str, Any] | None]] = defaultdict(asyncio.Queue)

    async def list_objects(self, descriptor: ResourceDescriptor) -> dict[str, Any]:
        self.list_calls.append(descriptor.resource)
        errors = self.list_errors[descriptor.resource]
        if errors:
            raise errors.pop(0)
        return {
            "items": list(self.objects.get(descriptor.resource, [])),
            "metadata": {"resourceVersion": self.resource_version},
        }

    async def watch(
        self,
        descriptor: ResourceDescriptor,
        *,
        resource_version: str,
        timeout_seconds: int,
    ) -> AsyncIterator[dict[str, Any]]:
        self.watch_calls.append((descriptor.resource, resource_version))
        queue = self._queues[descriptor.resource]
        while True:
            event = await queue.get()
            if event is None:
                return
            yield event

    def push(self, resource: str, event_type: str, obj: dict[str, Any]) -> None:
        self._queues[resource].put_nowait({"type": event_type, "object": obj})

    def close(self, resource: str) -> None:
        self._queues[resource].put_nowait(None)


async def wait_until(predicate: Any, timeout: float = 2.0) -> None:
    """Poll *predicate* on the event loop until it is truthy."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def static_cache() -> StaticCache:
    cache = StaticCache()
    cache.load(
        "Pod",
        [
            make_pod("p1", "ns1", labels={"app": "web", "tier": "frontend"}),
            make_pod("p2", "ns1", labels={"app": "web", "tier": "backend"}),
            make_pod("p3", "ns2", labels={"app": "db"}),
        ],
    )
    cache.load("Node", [make_node("node-a", labels={"zone": "a"}), make_node("node-b", labels={"zone": "b"})])
    return cache


@pytest.fixture()
def handler(transport: RecordingTransport, static_cache: StaticCache) -> ResourceHandler:
    return ResourceHandler(transport, static_cache)
