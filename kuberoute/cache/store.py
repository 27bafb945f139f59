"""Per-resource object store with a namespace index."""

from __future__ import annotations

from collections.abc import Iterable

from kuberoute.models.resources import TypedObject, object_key


class ObjectStore:
    """Objects of one resource keyed ``namespace/name`` (or ``name``).

    Writes come only from the owning informer on the event loop; readers see
    either the state before or after a write, never a partial ``replace``.
    """

    def __init__(self) -> None:
        self._items: dict[str, TypedObject] = {}
        self._by_namespace: dict[str, dict[str, TypedObject]] = {}

    def replace(self, objects: Iterable[TypedObject]) -> None:
        """Swap in a complete new snapshot (used after a full list)."""
        items: dict[str, TypedObject] = {}
        by_namespace: dict[str, dict[str, TypedObject]] = {}
        for obj in objects:
            items[obj.key] = obj
            by_namespace.setdefault(obj.namespace, {})[obj.key] = obj
        self._items = items
        self._by_namespace = by_namespace

    def upsert(self, obj: TypedObject) -> None:
        self._items[obj.key] = obj
        self._by_namespace.setdefault(obj.namespace, {})[obj.key] = obj

    def delete(self, obj: TypedObject) -> None:
        self._items.pop(obj.key, None)
        bucket = self._by_namespace.get(obj.namespace)
        if bucket is not None:
            bucket.pop(obj.key, None)
            if not bucket:
                del self._by_namespace[obj.namespace]

    def get(self, namespace: str | None, name: str) -> TypedObject | None:
        return self._items.get(object_key(namespace, name))

    def list(self, namespace: str | None = None) -> list[TypedObject]:
        """All objects, or only those in *namespace* when given."""
        if namespace is None:
            return list(self._items.values())
        return list(self._by_namespace.get(namespace, {}).values())

    def namespaces(self) -> list[str]:
        return sorted(self._by_namespace)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items
