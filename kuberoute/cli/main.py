"""Click entry point for the ``kuberoute`` command.

Commands:
    serve  -- run the service (informers + REST API) in the foreground.
    kinds  -- print the built-in kind registry.
    get    -- fetch one cached object from a running server.
    list   -- list cached objects from a running server.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import sys

import click
import httpx

from kuberoute.config import load_config
from kuberoute.registry import DEFAULT_REGISTRY

_DEFAULT_SERVER = "http://localhost:8080"


@click.group()
@click.version_option(package_name="kuberoute")
def cli() -> None:
    """Kubernetes resource access façade."""


@cli.command()
@click.option("--port", type=int, default=None, help="Override KUBEROUTE_API_PORT.")
@click.option("--log-level", type=click.Choice(["debug", "info", "warning", "error"]), default=None)
@click.option("--context", "kube_context", default=None, help="kubeconfig context to use.")
def serve(port: int | None, log_level: str | None, kube_context: str | None) -> None:
    """Run informers and the REST API until interrupted."""
    from kuberoute.app import main

    config = load_config()
    if port is not None:
        config.api = dataclasses.replace(config.api, port=port)
    if log_level is not None:
        config.log = dataclasses.replace(config.log, level=log_level)
    if kube_context is not None:
        config.kube = dataclasses.replace(config.kube, context=kube_context)
    asyncio.run(main(config))


@cli.command()
@click.option("--output", "-o", type=click.Choice(["table", "json"]), default="table")
def kinds(output: str) -> None:
    """Print every supported kind with its resource and scope."""
    descriptors = sorted(DEFAULT_REGISTRY.descriptors(), key=lambda d: d.kind)
    if output == "json":
        rows = [
            {
                "kind": d.kind,
                "group": d.gvr.group,
                "version": d.gvr.version,
                "resource": d.gvr.resource,
                "namespaced": d.namespaced,
            }
            for d in descriptors
        ]
        click.echo(json.dumps(rows, indent=2))
        return
    width = max(len(d.kind) for d in descriptors)
    for d in descriptors:
        scope = "namespaced" if d.namespaced else "cluster"
        click.echo(f"{d.kind:<{width}}  {str(d.gvr):<55}  {scope}")


@cli.command()
@click.argument("kind")
@click.argument("name")
@click.option("--namespace", "-n", default="_", help="Namespace (omit for cluster-scoped kinds).")
@click.option("--server", default=_DEFAULT_SERVER, envvar="KUBEROUTE_SERVER", show_default=True)
def get(kind: str, name: str, namespace: str, server: str) -> None:
    """Fetch KIND/NAME from the server's cache."""
    _request(server, f"/api/v1/kinds/{kind}/namespaces/{namespace}/{name}")


@cli.command(name="list")
@click.argument("kind")
@click.option("--namespace", "-n", default="_", help="Namespace (omit for cluster-scoped kinds).")
@click.option("--selector", "-l", default="", help="Label selector, e.g. app=web,tier!=db.")
@click.option("--server", default=_DEFAULT_SERVER, envvar="KUBEROUTE_SERVER", show_default=True)
def list_cmd(kind: str, namespace: str, selector: str, server: str) -> None:
    """List KIND objects from the server's cache."""
    params = {"labelSelector": selector} if selector else None
    _request(server, f"/api/v1/kinds/{kind}/namespaces/{namespace}", params=params)


def _request(server: str, path: str, params: dict[str, str] | None = None) -> None:
    try:
        response = httpx.get(f"{server.rstrip('/')}{path}", params=params, timeout=10.0)
    except httpx.HTTPError as exc:
        raise click.ClickException(f"cannot reach {server}: {exc}") from exc
    try:
        payload = response.json()
    except ValueError:
        payload = {"error": "INVALID_RESPONSE", "detail": response.text}
    click.echo(json.dumps(payload, indent=2))
    if not response.is_success:
        sys.exit(1)
