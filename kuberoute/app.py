"""Application bootstrap for kuberoute.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → transport → cache → handler → REST

Shutdown is fully graceful: components are stopped in reverse startup order.
Each component's stop error is caught and logged independently so that a
single component failure does not prevent the rest from shutting down cleanly.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from kuberoute.config import load_config, parse_time_window
from kuberoute.observability.logging import get_logger, setup_logging
from kuberoute.registry import DEFAULT_REGISTRY

if TYPE_CHECKING:
    import structlog

    from kuberoute.cache import CacheCoordinator
    from kuberoute.handler import ResourceHandler
    from kuberoute.models.config import KubeRouteConfig
    from kuberoute.transport import HttpTransport

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KubeRouteApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    ``stop()`` is safe to call on an app that was never started (or was
    already stopped).
    """

    def __init__(self, config: KubeRouteConfig | None = None) -> None:
        self.config = config

        self._transport: HttpTransport | None = None
        self._cache: CacheCoordinator | None = None
        self._handler: ResourceHandler | None = None
        self._rest_server: object | None = None

        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def handler(self) -> ResourceHandler | None:
        return self._handler

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self, serve_rest: bool = True) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        The caller (main()) re-raises this as a non-zero exit.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            self.config = load_config()

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("kuberoute starting", version=_kuberoute_version())

        # --- 3. Transport -----------------------------------------------
        await self._start_transport()

        # --- 4. Informer cache ------------------------------------------
        await self._start_cache()

        # --- 5. Resource handler ----------------------------------------
        self._start_handler()

        # --- 6. REST API ------------------------------------------------
        if serve_rest:
            await self._start_rest()

        self._running = True
        self._log.info("kuberoute started", port=self.config.api.port)

    async def _start_transport(self) -> None:
        """Build the httpx transport from in-cluster config or kubeconfig."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting transport")
        try:
            from kuberoute.transport import HttpTransport

            self._transport = await HttpTransport.from_kube_config(self.config.kube)
        except Exception as exc:
            raise _ComponentError("transport", exc) from exc

    async def _start_cache(self) -> None:
        """Register the configured kinds, start informers, wait for first sync.

        A sync timeout is not fatal: unsynced kinds answer reads with
        CacheUnavailable until their informer catches up.
        """
        assert self._log is not None
        assert self.config is not None
        assert self._transport is not None
        self._log.debug("starting informer cache")
        try:
            from kuberoute.cache import CacheCoordinator

            cache = CacheCoordinator(
                self._transport,
                resync_seconds=parse_time_window(self.config.cache.resync),
            )
            for kind in self.config.cache.kinds:
                cache.register(DEFAULT_REGISTRY[kind])
            await cache.start()
            self._cache = cache
        except Exception as exc:
            raise _ComponentError("cache", exc) from exc

        synced = await self._cache.wait_for_sync(timeout=self.config.cache.sync_timeout)
        self._log.info(
            "informer cache started",
            kinds=len(self.config.cache.kinds),
            fully_synced=synced,
            state=str(self._cache.readiness()),
        )

    def _start_handler(self) -> None:
        assert self._log is not None
        assert self._transport is not None
        assert self._cache is not None
        from kuberoute.handler import ResourceHandler

        self._handler = ResourceHandler(self._transport, self._cache, registry=DEFAULT_REGISTRY)
        self._log.info("resource handler ready")

    async def _start_rest(self) -> None:
        """Start the uvicorn REST server."""
        assert self._log is not None
        assert self.config is not None
        assert self._handler is not None
        self._log.debug("starting rest api")
        try:
            import uvicorn

            from kuberoute.api import build_app

            fastapi_app = build_app(handler=self._handler, cache=self._cache, config=self.config)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host="0.0.0.0",
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest api started", port=self.config.api.port)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("kuberoute shutting down")

        self._running = False

        if self._rest_server is not None:
            # uvicorn exits its serve() loop on this flag
            self._rest_server.should_exit = True  # type: ignore[attr-defined]
            self._rest_server = None

        for task in reversed(self._background_tasks):
            if not task.done():
                task.cancel()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

        self._handler = None
        await self._stop_component("cache", self._cache)
        self._cache = None
        await self._stop_component("transport", self._transport)
        self._transport = None

        log.info("kuberoute stopped")

    async def _stop_component(self, name: str, component: object | None) -> None:
        """Call stop() on a component if it has that method, catching all errors."""
        if component is None:
            return
        log = self._log or get_logger("app")
        stop_fn = getattr(component, "stop", None)
        if stop_fn is None:
            return
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component stop timed out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component stop raised an error", component=name, error=str(exc))


def _kuberoute_version() -> str:
    from kuberoute import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(config: KubeRouteConfig | None = None) -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KubeRouteApp(config)
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        while app._running:
            await asyncio.sleep(1)
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app._running:
            await app.stop()
