"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_CACHE_KINDS: tuple[str, ...] = (
    "ConfigMap",
    "CronJob",
    "DaemonSet",
    "Deployment",
    "Ingress",
    "Job",
    "Namespace",
    "Node",
    "PersistentVolume",
    "PersistentVolumeClaim",
    "Pod",
    "ReplicaSet",
    "Service",
    "StatefulSet",
)


@dataclass
class KubeConfig:
    """API server connection configuration."""

    context: str = ""
    request_timeout: int = 30
    verify_ssl: bool = True


@dataclass
class CacheConfig:
    """Informer cache configuration."""

    kinds: tuple[str, ...] = DEFAULT_CACHE_KINDS
    resync: str = "10m"
    sync_timeout: int = 60


@dataclass
class APIConfig:
    """REST API configuration."""

    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KubeRouteConfig:
    """Top-level kuberoute configuration."""

    cluster_id: str = ""
    kube: KubeConfig = field(default_factory=KubeConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
