"""Tests for the kuberoute click CLI."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from click.testing import CliRunner

from kuberoute.cli import cli
from kuberoute.registry import DEFAULT_REGISTRY


class TestKinds:
    def test_json_output_covers_registry(self) -> None:
        result = CliRunner().invoke(cli, ["kinds", "-o", "json"])
        assert result.exit_code == 0
        rows = json.loads(result.output)
        assert len(rows) == len(DEFAULT_REGISTRY)
        pod = next(r for r in rows if r["kind"] == "Pod")
        assert pod == {"kind": "Pod", "group": "", "version": "v1", "resource": "pods", "namespaced": True}

    def test_table_output(self) -> None:
        result = CliRunner().invoke(cli, ["kinds"])
        assert result.exit_code == 0
        node_line = next(line for line in result.output.splitlines() if line.startswith("Node "))
        assert "core/v1/nodes" in node_line
        assert node_line.endswith("cluster")


class TestRemoteCommands:
    @pytest.fixture()
    def calls(self, monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
        recorded: list[dict[str, Any]] = []

        def fake_get(url: str, params: dict[str, str] | None = None, timeout: float = 0) -> httpx.Response:
            recorded.append({"url": url, "params": params})
            if url.endswith("/missing"):
                return httpx.Response(404, json={"error": "NOT_FOUND", "detail": "Pod ns1/missing not found"})
            return httpx.Response(200, json={"kind": "Pod", "metadata": {"name": "p1"}})

        monkeypatch.setattr(httpx, "get", fake_get)
        return recorded

    def test_get_builds_route(self, calls: list[dict[str, Any]]) -> None:
        result = CliRunner().invoke(cli, ["get", "Pod", "p1", "-n", "ns1", "--server", "http://svc:8080/"])
        assert result.exit_code == 0
        assert calls[0]["url"] == "http://svc:8080/api/v1/kinds/Pod/namespaces/ns1/p1"
        assert json.loads(result.output)["metadata"]["name"] == "p1"

    def test_list_defaults_to_cluster_placeholder(self, calls: list[dict[str, Any]]) -> None:
        result = CliRunner().invoke(cli, ["list", "Node", "-l", "zone=a"])
        assert result.exit_code == 0
        assert calls[0]["url"].endswith("/api/v1/kinds/Node/namespaces/_")
        assert calls[0]["params"] == {"labelSelector": "zone=a"}

    def test_error_response_exits_non_zero(self, calls: list[dict[str, Any]]) -> None:
        result = CliRunner().invoke(cli, ["get", "Pod", "missing", "-n", "ns1"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"] == "NOT_FOUND"
