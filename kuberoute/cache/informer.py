"""List-then-watch informer keeping one ObjectStore in sync with the API server.

Loop:
    1. Full list → ``store.replace`` → mark synced.
    2. Watch from the list's resourceVersion, applying ADDED/MODIFIED/DELETED.
    3. On ``410 Gone``, or when the resync period elapses, go back to 1.
    4. On any other failure, back off exponentially and go back to 1.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from kuberoute.cache.store import ObjectStore
from kuberoute.errors import TransportError
from kuberoute.models.resources import TypedObject
from kuberoute.observability.metrics import cache_objects, informer_errors_total, informer_relists_total

if TYPE_CHECKING:
    from kuberoute.interfaces import ListWatchClient
    from kuberoute.models.resources import ResourceDescriptor

_log = structlog.get_logger(component="cache.informer")

_MAX_WATCH_SECONDS = 300
_BACKOFF_BASE = 1.0
_BACKOFF_MAX = 30.0


class _Relist(Exception):
    """Internal signal: the watch window expired and a full relist is needed."""


class Informer:
    """Background sync for one resource.

    Args:
        descriptor:     Resource to mirror.
        client:         ListWatchClient (normally the HttpTransport).
        resync_seconds: Maximum time between full relists. Must be at least 1.
    """

    def __init__(
        self,
        descriptor: ResourceDescriptor,
        client: ListWatchClient,
        resync_seconds: int = 600,
        backoff_base: float = _BACKOFF_BASE,
        backoff_max: float = _BACKOFF_MAX,
    ) -> None:
        if resync_seconds < 1:
            raise ValueError(f"resync_seconds must be >= 1, got {resync_seconds}")
        self.descriptor = descriptor
        self.store = ObjectStore()
        self._client = client
        self._resync_seconds = resync_seconds
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max
        self._synced = asyncio.Event()
        self._consecutive_failures = 0

    @property
    def synced(self) -> bool:
        return self._synced.is_set()

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    async def wait_for_sync(self) -> None:
        await self._synced.wait()

    def mark_unsynced(self) -> None:
        """Refuse reads until the next successful list."""
        self._synced.clear()

    async def run(self) -> None:
        """Run until cancelled."""
        kind = self.descriptor.kind
        backoff = self._backoff_base
        while True:
            try:
                resource_version = await self._list()
                self._consecutive_failures = 0
                backoff = self._backoff_base
                await self._watch(resource_version)
            except _Relist:
                continue
            except Exception as exc:
                self._consecutive_failures += 1
                informer_errors_total.labels(kind=kind).inc()
                _log.warning(
                    "informer_list_watch_failed",
                    kind=kind,
                    status_code=exc.status_code if isinstance(exc, TransportError) else None,
                    error_type=type(exc).__name__,
                    error=str(exc),
                    retry_in=backoff,
                    failures=self._consecutive_failures,
                )
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, self._backoff_max)

    async def _list(self) -> str:
        kind = self.descriptor.kind
        api_version = self.descriptor.gvr.api_version
        payload = await self._client.list_objects(self.descriptor)
        objects = [TypedObject.from_dict(kind, item, api_version) for item in payload.get("items") or []]
        self.store.replace(objects)
        cache_objects.labels(kind=kind).set(len(self.store))
        informer_relists_total.labels(kind=kind).inc()
        if not self._synced.is_set():
            _log.info("informer_synced", kind=kind, objects=len(self.store))
        self._synced.set()
        return str((payload.get("metadata") or {}).get("resourceVersion") or "")

    async def _watch(self, resource_version: str) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._resync_seconds
        while True:
            remaining = int(deadline - loop.time())
            if remaining <= 0:
                raise _Relist
            window = min(remaining, _MAX_WATCH_SECONDS)
            started = loop.time()
            async for event in self._client.watch(
                self.descriptor,
                resource_version=resource_version,
                timeout_seconds=window,
            ):
                resource_version = self._apply(event, resource_version)
            if loop.time() - started < 1.0:
                # server closed the stream immediately
                await asyncio.sleep(self._backoff_base)

    def _apply(self, event: dict[str, object], resource_version: str) -> str:
        """Apply one watch event; return the resourceVersion to resume from."""
        kind = self.descriptor.kind
        event_type = event.get("type")
        raw = event.get("object")
        if not isinstance(raw, dict):
            return resource_version

        if event_type == "ERROR":
            error = TransportError.from_status(raw)
            if error.is_gone:
                _log.info("informer_watch_expired", kind=kind, resource_version=resource_version)
                raise _Relist
            raise error

        obj = TypedObject.from_dict(kind, raw, self.descriptor.gvr.api_version)
        if event_type == "BOOKMARK":
            return obj.resource_version or resource_version
        if event_type in ("ADDED", "MODIFIED"):
            self.store.upsert(obj)
        elif event_type == "DELETED":
            self.store.delete(obj)
        else:
            _log.debug("informer_unknown_event", kind=kind, event_type=str(event_type))
            return resource_version
        cache_objects.labels(kind=kind).set(len(self.store))
        return obj.resource_version or resource_version
