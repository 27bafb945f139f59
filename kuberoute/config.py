"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re

from kuberoute.models.config import (
    DEFAULT_CACHE_KINDS,
    APIConfig,
    CacheConfig,
    KubeConfig,
    KubeRouteConfig,
    LogConfig,
)
from kuberoute.registry import DEFAULT_REGISTRY

# Lower bound for KUBEROUTE_CACHE_RESYNC, in seconds
_MIN_RESYNC_SECONDS = 30


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEROUTE_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_time_window(value: str, min_seconds: int = 0) -> str:
    if not re.match(r"^[0-9]+(s|m|h)$", value):
        raise ValueError(f"Invalid time window format: {value}")
    if parse_time_window(value) < min_seconds:
        raise ValueError(f"Time window {value} is below the minimum of {min_seconds}s")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_kinds(value: str) -> tuple[str, ...]:
    kinds = tuple(k.strip() for k in value.split(",") if k.strip())
    unknown = [k for k in kinds if DEFAULT_REGISTRY.lookup(k) is None]
    if unknown:
        raise ValueError(f"Unsupported cache kinds: {', '.join(unknown)}")
    return kinds


def parse_time_window(value: str) -> int:
    """Convert a validated time window ("30s", "10m", "1h") to seconds."""
    amount = int(value[:-1])
    return amount * {"s": 1, "m": 60, "h": 3600}[value[-1]]


def load_config() -> KubeRouteConfig:
    """Load configuration from KUBEROUTE_* environment variables."""
    return KubeRouteConfig(
        cluster_id=_env("CLUSTER_ID", ""),
        kube=KubeConfig(
            context=_env("KUBE_CONTEXT", ""),
            request_timeout=_env_int("REQUEST_TIMEOUT", 30, min_val=1, max_val=300),
            verify_ssl=_env_bool("VERIFY_SSL", True),
        ),
        cache=CacheConfig(
            kinds=_validate_kinds(_env("CACHE_KINDS", ",".join(DEFAULT_CACHE_KINDS))),
            resync=_validate_time_window(_env("CACHE_RESYNC", "10m"), min_seconds=_MIN_RESYNC_SECONDS),
            sync_timeout=_env_int("CACHE_SYNC_TIMEOUT", 60, min_val=5, max_val=600),
        ),
        api=APIConfig(
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
