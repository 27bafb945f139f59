"""Cache coordinator: owns one informer per indexed resource.

The coordinator is created by the application bootstrap and injected into the
handler, which only ever calls ``accessor_for``.  Informer tasks are the sole
writers to their stores.
"""

from __future__ import annotations

import asyncio
import functools
from typing import TYPE_CHECKING

import structlog

from kuberoute.cache.informer import Informer
from kuberoute.cache.lister import Lister
from kuberoute.errors import CacheUnavailable
from kuberoute.models.resources import CacheReadiness

if TYPE_CHECKING:
    from kuberoute.interfaces import ListWatchClient
    from kuberoute.models.resources import GroupVersionResource, ResourceDescriptor

_log = structlog.get_logger(component="cache.coordinator")


class CacheCoordinator:
    """Shared informer factory.

    Args:
        client:         ListWatchClient the informers list and watch through.
        resync_seconds: Full relist period for every informer.
        respawn_delay:  Seconds before an informer task that exited is restarted.
    """

    def __init__(self, client: ListWatchClient, resync_seconds: int = 600, respawn_delay: float = 1.0) -> None:
        self._client = client
        self._resync_seconds = resync_seconds
        self._respawn_delay = respawn_delay
        self._informers: dict[GroupVersionResource, Informer] = {}
        self._tasks: dict[GroupVersionResource, asyncio.Task[None]] = {}
        self._running = False

    def register(self, descriptor: ResourceDescriptor) -> Informer:
        """Index *descriptor*; idempotent.  Starts the informer if already running."""
        informer = self._informers.get(descriptor.gvr)
        if informer is not None:
            return informer
        informer = Informer(descriptor, self._client, resync_seconds=self._resync_seconds)
        self._informers[descriptor.gvr] = informer
        if self._running:
            self._spawn(informer)
        return informer

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for informer in self._informers.values():
            self._spawn(informer)
        _log.info("cache coordinator started", resources=len(self._informers))

    def _spawn(self, informer: Informer) -> None:
        gvr = informer.descriptor.gvr
        task = asyncio.create_task(informer.run(), name=f"informer-{gvr}")
        task.add_done_callback(functools.partial(self._on_informer_exit, informer))
        self._tasks[gvr] = task

    def _on_informer_exit(self, informer: Informer, task: asyncio.Task[None]) -> None:
        """Mark an informer that stopped on its own as unsynced and schedule a restart."""
        if task.cancelled():
            return
        exc = task.exception()
        if not self._running:
            return
        informer.mark_unsynced()
        _log.error(
            "informer_exited",
            kind=informer.descriptor.kind,
            error_type=type(exc).__name__ if exc is not None else None,
            error=str(exc) if exc is not None else "",
            respawn_in=self._respawn_delay,
        )
        loop = asyncio.get_running_loop()
        loop.call_later(self._respawn_delay, self._respawn, informer, task)

    def _respawn(self, informer: Informer, exited: asyncio.Task[None]) -> None:
        # stop() or a newer task supersedes the restart
        if self._running and self._tasks.get(informer.descriptor.gvr) is exited:
            self._spawn(informer)

    async def wait_for_sync(self, timeout: float) -> bool:
        """Wait until every registered informer has completed its first list.

        Returns False (and logs the stragglers) if *timeout* elapses first.
        """
        waits = [informer.wait_for_sync() for informer in self._informers.values()]
        try:
            await asyncio.wait_for(asyncio.gather(*waits), timeout=timeout)
        except TimeoutError:
            pending = sorted(i.descriptor.kind for i in self._informers.values() if not i.synced)
            _log.warning("cache sync timed out", timeout=timeout, unsynced=pending)
            return False
        return True

    async def stop(self) -> None:
        self._running = False
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        _log.info("cache coordinator stopped")

    def accessor_for(self, gvr: GroupVersionResource) -> Lister:
        """Return a lister for *gvr*.

        Raises:
            CacheUnavailable: the resource is not indexed or has not synced.
        """
        informer = self._informers.get(gvr)
        if informer is None:
            raise CacheUnavailable(gvr, "resource is not indexed")
        if not informer.synced:
            raise CacheUnavailable(gvr, "initial sync has not completed")
        return Lister(informer.descriptor, informer.store)

    def readiness(self) -> CacheReadiness:
        synced = sum(1 for informer in self._informers.values() if informer.synced)
        if synced == 0:
            return CacheReadiness.WARMING
        if synced < len(self._informers):
            return CacheReadiness.PARTIALLY_READY
        return CacheReadiness.READY

    def synced_kinds(self) -> list[str]:
        return sorted(i.descriptor.kind for i in self._informers.values() if i.synced)

    def indexed_kinds(self) -> list[str]:
        return sorted(i.descriptor.kind for i in self._informers.values())

    def object_counts(self) -> dict[str, int]:
        return {i.descriptor.kind: len(i.store) for i in self._informers.values()}
