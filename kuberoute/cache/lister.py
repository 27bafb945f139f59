"""Read-only accessor over an informer's store."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kuberoute.errors import NotFound

if TYPE_CHECKING:
    from kuberoute.cache.store import ObjectStore
    from kuberoute.models.resources import ResourceDescriptor, TypedObject
    from kuberoute.selectors import Selector


class Lister:
    """CacheAccessor for one resource.

    The namespace is only consulted for namespaced resources; results are
    returned in store-key order so repeated calls are stable.
    """

    def __init__(self, descriptor: ResourceDescriptor, store: ObjectStore) -> None:
        self._descriptor = descriptor
        self._store = store

    def get(self, namespace: str | None, name: str) -> TypedObject:
        ns = namespace if self._descriptor.namespaced else None
        obj = self._store.get(ns, name)
        if obj is None:
            raise NotFound(self._descriptor.kind, ns, name)
        return obj

    def list(self, namespace: str | None, selector: Selector) -> list[TypedObject]:
        ns = namespace if self._descriptor.namespaced else None
        matched = [obj for obj in self._store.list(ns) if selector.matches(obj.labels)]
        matched.sort(key=lambda obj: obj.key)
        return matched
