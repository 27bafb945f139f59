"""Resource router/handler: one entry point for all resource operations.

Every operation first resolves the kind through the registry, then takes one
of two fixed paths:

    create / update / delete  → live request through the TransportClient
    get / list                → lookup through the CacheCoordinator

There is deliberately no way to force a live read or a cached write.  The
handler holds only immutable references to its collaborators and keeps no
state between calls, so one instance serves any number of concurrent callers.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

from kuberoute.errors import InvalidSelector, UnsupportedKind
from kuberoute.models.resources import DeleteOptions, ObjectEnvelope
from kuberoute.observability.metrics import record_outcome
from kuberoute.registry import DEFAULT_REGISTRY
from kuberoute.selectors import LabelSelectorParser

if TYPE_CHECKING:
    from kuberoute.interfaces import (
        CacheCoordinatorProtocol,
        KindRegistryProtocol,
        SelectorParser,
        TransportClient,
    )
    from kuberoute.models.resources import ResourceDescriptor, TypedObject

_log = structlog.get_logger(component="handler")

_JSON_HEADERS = {"Content-Type": "application/json"}


class ResourceHandler:
    """Kind-keyed façade over the live API server and the informer cache.

    Args:
        transport: TransportClient used for create/update/delete.
        cache:     CacheCoordinator used for get/list.
        registry:  Kind → ResourceDescriptor lookup.
        selectors: Label-selector parser for ``list``.
    """

    def __init__(
        self,
        transport: TransportClient,
        cache: CacheCoordinatorProtocol,
        registry: KindRegistryProtocol = DEFAULT_REGISTRY,
        selectors: SelectorParser | None = None,
    ) -> None:
        self._transport = transport
        self._cache = cache
        self._registry = registry
        self._selectors = selectors or LabelSelectorParser()

    @property
    def registry(self) -> KindRegistryProtocol:
        return self._registry

    def resolve(self, kind: str) -> ResourceDescriptor:
        """Return the descriptor for *kind* or raise UnsupportedKind."""
        descriptor = self._registry.lookup(kind)
        if descriptor is None:
            raise UnsupportedKind(kind)
        return descriptor

    @contextmanager
    def _observe(self, operation: str, kind: str) -> Iterator[None]:
        # unknown kinds share one label value to bound metric cardinality
        label = kind if self._registry.lookup(kind) is not None else "unsupported"
        try:
            yield
        except Exception as exc:
            record_outcome(operation, label, type(exc).__name__)
            raise
        record_outcome(operation, label, "ok")

    # ------------------------------------------------------------------
    # Mutating path (live)
    # ------------------------------------------------------------------

    async def create(self, kind: str, namespace: str | None, envelope: ObjectEnvelope) -> ObjectEnvelope:
        """POST *envelope* to the kind's collection and return the stored object."""
        with self._observe("create", kind):
            descriptor = self.resolve(kind)
            raw = await self._transport.request(
                "POST",
                descriptor,
                namespace=descriptor.scope(namespace),
                body=envelope.raw,
                headers=_JSON_HEADERS,
            )
            return ObjectEnvelope(raw=raw)

    async def update(
        self,
        kind: str,
        namespace: str | None,
        name: str,
        envelope: ObjectEnvelope,
    ) -> ObjectEnvelope:
        """PUT *envelope* over the named object and return the stored object.

        *name* is passed through unchecked; an unknown name surfaces as the
        API server's 404 TransportError.
        """
        with self._observe("update", kind):
            descriptor = self.resolve(kind)
            raw = await self._transport.request(
                "PUT",
                descriptor,
                namespace=descriptor.scope(namespace),
                name=name,
                body=envelope.raw,
                headers=_JSON_HEADERS,
            )
            return ObjectEnvelope(raw=raw)

    async def delete(
        self,
        kind: str,
        namespace: str | None,
        name: str,
        options: DeleteOptions | None = None,
    ) -> None:
        """DELETE the named object, sending *options* as the request body."""
        with self._observe("delete", kind):
            descriptor = self.resolve(kind)
            options = options or DeleteOptions()
            params = {"dryRun": ",".join(options.dry_run)} if options.dry_run else None
            await self._transport.request(
                "DELETE",
                descriptor,
                namespace=descriptor.scope(namespace),
                name=name,
                body=options.to_json(),
                headers=_JSON_HEADERS,
                params=params,
            )

    # ------------------------------------------------------------------
    # Read path (cache)
    # ------------------------------------------------------------------

    def get(self, kind: str, namespace: str | None, name: str) -> TypedObject:
        """Return the cached object; may lag the API server."""
        with self._observe("get", kind):
            descriptor = self.resolve(kind)
            scoped = descriptor.scope(namespace)
            accessor = self._cache.accessor_for(descriptor.gvr)
            return accessor.get(scoped, name)

    def list(self, kind: str, namespace: str | None, label_selector: str = "") -> list[TypedObject]:
        """Return cached objects matching *label_selector*; empty list if none."""
        with self._observe("list", kind):
            descriptor = self.resolve(kind)
            try:
                selector = self._selectors.parse(label_selector)
            except InvalidSelector as exc:
                _log.warning(
                    "label_selector_invalid",
                    kind=kind,
                    selector=label_selector,
                    error=exc.reason,
                )
                raise
            scoped = descriptor.scope(namespace)
            accessor = self._cache.accessor_for(descriptor.gvr)
            return accessor.list(scoped, selector)
