"""Unit tests for ResourceHandler with mocked collaborators."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import REGISTRY
from structlog.testing import capture_logs

from kuberoute.errors import InvalidSelector, NamespaceRequired, NotFound, UnsupportedKind
from kuberoute.handler import ResourceHandler
from kuberoute.models.resources import ObjectEnvelope, TypedObject
from kuberoute.registry import DEFAULT_REGISTRY
from kuberoute.selectors import parse_selector


def _handler(selectors: MagicMock | None = None) -> tuple[ResourceHandler, AsyncMock, MagicMock]:
    transport = MagicMock()
    transport.request = AsyncMock(return_value=b'{"kind":"Pod"}')
    cache = MagicMock()
    return ResourceHandler(transport, cache, selectors=selectors), transport.request, cache


def _count(operation: str, kind: str, outcome: str) -> float:
    value = REGISTRY.get_sample_value(
        "kuberoute_handler_requests_total",
        {"operation": operation, "kind": kind, "outcome": outcome},
    )
    return value or 0.0


class TestDispatch:
    async def test_create_uses_descriptor_from_registry(self) -> None:
        handler, request, cache = _handler()
        result = await handler.create("Pod", "ns1", ObjectEnvelope(raw=b"{}"))
        assert result == ObjectEnvelope(raw=b'{"kind":"Pod"}')
        method, descriptor = request.await_args.args
        assert method == "POST"
        assert descriptor is DEFAULT_REGISTRY["Pod"]
        cache.accessor_for.assert_not_called()

    def test_get_delegates_to_accessor(self) -> None:
        handler, request, cache = _handler()
        expected = TypedObject(kind="Pod", api_version="v1", namespace="ns1", name="p1")
        cache.accessor_for.return_value.get.return_value = expected
        assert handler.get("Pod", "ns1", "p1") is expected
        cache.accessor_for.assert_called_once_with(DEFAULT_REGISTRY["Pod"].gvr)
        cache.accessor_for.return_value.get.assert_called_once_with("ns1", "p1")
        request.assert_not_awaited()

    def test_list_passes_parsed_selector(self) -> None:
        handler, _, cache = _handler()
        cache.accessor_for.return_value.list.return_value = []
        assert handler.list("Node", "ignored", "zone=a") == []
        cache.accessor_for.return_value.list.assert_called_once_with(None, parse_selector("zone=a"))

    def test_custom_selector_parser_is_used(self) -> None:
        parser = MagicMock()
        handler, _, cache = _handler(selectors=parser)
        handler.list("Pod", "ns1", "anything")
        parser.parse.assert_called_once_with("anything")
        cache.accessor_for.return_value.list.assert_called_once_with("ns1", parser.parse.return_value)

    def test_get_propagates_not_found(self) -> None:
        handler, _, cache = _handler()
        cache.accessor_for.return_value.get.side_effect = NotFound("Pod", "ns1", "gone")
        with pytest.raises(NotFound):
            handler.get("Pod", "ns1", "gone")

    @pytest.mark.parametrize("namespace", ["", None])
    def test_list_reports_bad_selector_before_missing_namespace(self, namespace: str | None) -> None:
        handler, _, cache = _handler()
        with pytest.raises(InvalidSelector):
            handler.list("Pod", namespace, "=invalid==")
        cache.accessor_for.assert_not_called()

    def test_list_valid_selector_still_requires_namespace(self) -> None:
        handler, _, cache = _handler()
        with pytest.raises(NamespaceRequired):
            handler.list("Pod", "", "app=web")
        cache.accessor_for.assert_not_called()


class TestObservability:
    def test_invalid_selector_is_logged(self) -> None:
        handler, _, cache = _handler()
        with capture_logs() as logs, pytest.raises(InvalidSelector):
            handler.list("Pod", "ns1", "app in (web")
        (entry,) = [e for e in logs if e["event"] == "label_selector_invalid"]
        assert entry["log_level"] == "warning"
        assert entry["kind"] == "Pod"
        assert entry["selector"] == "app in (web"
        cache.accessor_for.assert_not_called()

    def test_success_outcome_recorded(self) -> None:
        handler, _, cache = _handler()
        before = _count("get", "ConfigMap", "ok")
        handler.get("ConfigMap", "ns1", "settings")
        assert _count("get", "ConfigMap", "ok") == before + 1

    async def test_unsupported_kind_shares_one_label(self) -> None:
        handler, _, _ = _handler()
        before = _count("delete", "unsupported", "UnsupportedKind")
        with pytest.raises(UnsupportedKind):
            await handler.delete("Gizmo", "ns1", "g")
        with pytest.raises(UnsupportedKind):
            await handler.delete("Widget", "ns1", "w")
        assert _count("delete", "unsupported", "UnsupportedKind") == before + 2
        assert _count("delete", "Widget", "UnsupportedKind") == 0
