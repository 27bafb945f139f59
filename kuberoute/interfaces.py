"""Collaborator interfaces consumed by the resource handler.

The handler depends only on these protocols; concrete implementations live in
``kuberoute.registry``, ``kuberoute.transport``, ``kuberoute.cache`` and
``kuberoute.selectors``.  Tests substitute fakes that satisfy the same shapes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from kuberoute.models.resources import GroupVersionResource, ResourceDescriptor, TypedObject
    from kuberoute.selectors import Selector


class KindRegistryProtocol(Protocol):
    def lookup(self, kind: str) -> ResourceDescriptor | None: ...

    def descriptors(self) -> list[ResourceDescriptor]: ...


class TransportClient(Protocol):
    """Issues one verb against one resource and returns the raw response body.

    Implementations raise ``TransportError`` on any non-2xx response.
    """

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
    ) -> bytes: ...


class CacheAccessor(Protocol):
    def get(self, namespace: str | None, name: str) -> TypedObject: ...

    def list(self, namespace: str | None, selector: Selector) -> list[TypedObject]: ...


class CacheCoordinatorProtocol(Protocol):
    def accessor_for(self, gvr: GroupVersionResource) -> CacheAccessor: ...


class SelectorParser(Protocol):
    def parse(self, text: str) -> Selector: ...


class ListWatchClient(Protocol):
    """Read-side transport used by informers to keep the cache in sync."""

    async def list_objects(self, descriptor: ResourceDescriptor) -> dict[str, Any]: ...

    def watch(
        self,
        descriptor: ResourceDescriptor,
        *,
        resource_version: str,
        timeout_seconds: int,
    ) -> AsyncIterator[dict[str, Any]]: ...
