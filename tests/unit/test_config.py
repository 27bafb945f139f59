"""Tests for environment-driven configuration."""

from __future__ import annotations

import os

import pytest

from kuberoute.config import load_config, parse_time_window
from kuberoute.models.config import DEFAULT_CACHE_KINDS


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("KUBEROUTE_"):
            monkeypatch.delenv(key)


class TestDefaults:
    def test_defaults(self) -> None:
        config = load_config()
        assert config.cluster_id == ""
        assert config.kube.request_timeout == 30
        assert config.kube.verify_ssl is True
        assert config.cache.kinds == DEFAULT_CACHE_KINDS
        assert config.cache.resync == "10m"
        assert config.cache.sync_timeout == 60
        assert config.api.port == 8080
        assert config.log.level == "info"


class TestOverrides:
    def test_values_are_read(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEROUTE_CLUSTER_ID", "prod-eu")
        monkeypatch.setenv("KUBEROUTE_KUBE_CONTEXT", "admin@prod")
        monkeypatch.setenv("KUBEROUTE_VERIFY_SSL", "false")
        monkeypatch.setenv("KUBEROUTE_CACHE_KINDS", "Pod, Deployment ,Node")
        monkeypatch.setenv("KUBEROUTE_CACHE_RESYNC", "30s")
        monkeypatch.setenv("KUBEROUTE_LOG_LEVEL", "DEBUG")
        config = load_config()
        assert config.cluster_id == "prod-eu"
        assert config.kube.context == "admin@prod"
        assert config.kube.verify_ssl is False
        assert config.cache.kinds == ("Pod", "Deployment", "Node")
        assert config.cache.resync == "30s"
        assert config.log.level == "debug"

    @pytest.mark.parametrize(
        ("key", "value", "attr", "expected"),
        [
            ("REQUEST_TIMEOUT", "0", ("kube", "request_timeout"), 1),
            ("REQUEST_TIMEOUT", "9999", ("kube", "request_timeout"), 300),
            ("CACHE_SYNC_TIMEOUT", "1", ("cache", "sync_timeout"), 5),
            ("API_PORT", "80", ("api", "port"), 1024),
        ],
    )
    def test_integers_are_clamped(
        self,
        monkeypatch: pytest.MonkeyPatch,
        key: str,
        value: str,
        attr: tuple[str, str],
        expected: int,
    ) -> None:
        monkeypatch.setenv(f"KUBEROUTE_{key}", value)
        section, field = attr
        assert getattr(getattr(load_config(), section), field) == expected


class TestValidation:
    def test_unknown_cache_kind(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEROUTE_CACHE_KINDS", "Pod,Widget")
        with pytest.raises(ValueError, match="Widget"):
            load_config()

    @pytest.mark.parametrize("value", ["10", "5d", "m", "-1m"])
    def test_bad_resync_window(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("KUBEROUTE_CACHE_RESYNC", value)
        with pytest.raises(ValueError, match="time window"):
            load_config()

    @pytest.mark.parametrize("value", ["0s", "1s", "29s"])
    def test_resync_window_below_minimum(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("KUBEROUTE_CACHE_RESYNC", value)
        with pytest.raises(ValueError, match="minimum"):
            load_config()

    @pytest.mark.parametrize("value", ["30s", "1m"])
    def test_resync_window_at_or_above_minimum(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("KUBEROUTE_CACHE_RESYNC", value)
        assert load_config().cache.resync == value

    def test_bad_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEROUTE_LOG_LEVEL", "verbose")
        with pytest.raises(ValueError, match="log level"):
            load_config()

    def test_non_integer_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEROUTE_REQUEST_TIMEOUT", "soon")
        with pytest.raises(ValueError):
            load_config()


@pytest.mark.parametrize(("value", "seconds"), [("45s", 45), ("10m", 600), ("2h", 7200)])
def test_parse_time_window(value: str, seconds: int) -> None:
    assert parse_time_window(value) == seconds
