"""httpx transport against the Kubernetes REST API.

Connection settings (server URL, bearer token, client certificates, CA
bundle) are resolved by kubernetes-asyncio from the in-cluster service
account or a kubeconfig; the requests themselves go through a pooled
``httpx.AsyncClient`` so raw bodies are forwarded byte-for-byte.
"""

from __future__ import annotations

import json
import ssl
import time
from collections.abc import AsyncIterator, Mapping
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from kuberoute.errors import TransportError
from kuberoute.observability.metrics import transport_request_seconds

if TYPE_CHECKING:
    from kuberoute.models.config import KubeConfig
    from kuberoute.models.resources import ResourceDescriptor

_log = structlog.get_logger(component="transport.http")

_LIST_PAGE_SIZE = 500
# Extra read slack on top of the server-side watch timeout
_WATCH_READ_SLACK = 30.0


def resource_path(descriptor: ResourceDescriptor, namespace: str | None = None, name: str | None = None) -> str:
    """Build the REST path for a collection or a single object.

    ``namespace`` is only inserted for namespaced resources.
    """
    gvr = descriptor.gvr
    parts = ["/api", gvr.version] if not gvr.group else ["/apis", gvr.group, gvr.version]
    if descriptor.namespaced and namespace:
        parts += ["namespaces", namespace]
    parts.append(gvr.resource)
    if name:
        parts.append(name)
    return "/".join(parts)


class HttpTransport:
    """TransportClient and ListWatchClient over httpx.

    Args:
        client: Configured AsyncClient whose ``base_url`` is the API server.
            The transport takes ownership and closes it in ``aclose()``.
        timeout: Per-request timeout in seconds for non-watch calls.
    """

    def __init__(self, client: httpx.AsyncClient, timeout: float = 30.0) -> None:
        self._client = client
        self._timeout = timeout

    @classmethod
    async def from_kube_config(cls, config: KubeConfig) -> HttpTransport:
        """Resolve credentials via kubernetes-asyncio and build a transport.

        In-cluster service-account configuration is tried first, then the
        local kubeconfig (``config.context`` selects a non-current context).
        """
        from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]
        from kubernetes_asyncio.client import Configuration  # type: ignore[import-untyped]

        configuration = Configuration()
        try:
            k8s_config.load_incluster_config(client_configuration=configuration)
            _log.info("transport configured from in-cluster service account")
        except k8s_config.ConfigException:
            await k8s_config.load_kube_config(
                context=config.context or None,
                client_configuration=configuration,
            )
            _log.info("transport configured from kubeconfig", context=config.context or "current")

        # TODO: re-read projected service-account tokens on rotation instead of
        # pinning the token resolved at startup.
        headers = {"Accept": "application/json"}
        for setting in configuration.auth_settings().values():
            if setting.get("in") == "header" and setting.get("value"):
                headers[setting["key"]] = setting["value"]

        client = httpx.AsyncClient(
            base_url=configuration.host,
            headers=headers,
            verify=_ssl_context(configuration, config.verify_ssl),
            timeout=httpx.Timeout(config.request_timeout),
        )
        return cls(client, timeout=float(config.request_timeout))

    # ------------------------------------------------------------------
    # Mutating path
    # ------------------------------------------------------------------

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
        """Issue one request and return the raw response body.

        Raises:
            TransportError: non-2xx response, or status 0 when the request
                could not be sent or no response arrived.
        """
        path = resource_path(descriptor, namespace, name)
        started = time.monotonic()
        try:
            response = await self._client.request(
                method,
                path,
                content=body,
                headers=dict(headers or {}),
                params=dict(params or {}),
            )
        except httpx.TimeoutException as exc:
            raise TransportError(0, "Timeout", f"{method} {path}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(0, "ConnectionError", f"{method} {path}: {exc}") from exc
        finally:
            transport_request_seconds.labels(method=method).observe(time.monotonic() - started)

        if not response.is_success:
            _log.debug(
                "api_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise TransportError.from_response(response.status_code, response.content)
        return response.content

    # ------------------------------------------------------------------
    # List / watch (informers only)
    # ------------------------------------------------------------------

    async def list_objects(self, descriptor: ResourceDescriptor) -> dict[str, Any]:
        """List every object of a resource across all namespaces.

        Follows ``continue`` tokens and returns a single list object whose
        ``metadata.resourceVersion`` is that of the final page.
        """
        items: list[dict[str, Any]] = []
        params: dict[str, str] = {"limit": str(_LIST_PAGE_SIZE)}
        resource_version = ""
        while True:
            raw = await self.request("GET", descriptor, params=params)
            try:
                page = json.loads(raw)
            except ValueError as exc:
                raise TransportError(0, "DecodeError", f"list {descriptor.resource}: {exc}") from exc
            items.extend(page.get("items") or [])
            metadata = page.get("metadata") or {}
            resource_version = str(metadata.get("resourceVersion") or resource_version)
            token = metadata.get("continue")
            if not token:
                break
            params = {"limit": str(_LIST_PAGE_SIZE), "continue": str(token)}
        return {"items": items, "metadata": {"resourceVersion": resource_version}}

    async def watch(
        self,
        descriptor: ResourceDescriptor,
        *,
        resource_version: str,
        timeout_seconds: int,
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream watch events from *resource_version* until the server closes.

        Yields decoded ``{"type": ..., "object": ...}`` dicts.
        """
        path = resource_path(descriptor)
        params = {
            "watch": "true",
            "allowWatchBookmarks": "true",
            "resourceVersion": resource_version,
            "timeoutSeconds": str(timeout_seconds),
        }
        timeout = httpx.Timeout(self._timeout, read=timeout_seconds + _WATCH_READ_SLACK)
        try:
            async with self._client.stream("GET", path, params=params, timeout=timeout) as response:
                if not response.is_success:
                    body = await response.aread()
                    raise TransportError.from_response(response.status_code, body)
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        yield json.loads(line)
                    except ValueError as exc:
                        raise TransportError(0, "DecodeError", f"watch {descriptor.resource}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(0, "ConnectionError", f"watch {path}: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def stop(self) -> None:
        await self.aclose()


def _ssl_context(configuration: Any, verify: bool) -> ssl.SSLContext:
    """Build an SSL context from a kubernetes-asyncio Configuration."""
    if verify and configuration.verify_ssl:
        ctx = ssl.create_default_context(cafile=configuration.ssl_ca_cert or None)
    else:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    if configuration.cert_file:
        ctx.load_cert_chain(configuration.cert_file, configuration.key_file or None)
    return ctx
