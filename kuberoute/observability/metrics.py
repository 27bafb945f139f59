"""Prometheus metrics for kuberoute.

All collectors are registered on the default ``prometheus_client`` registry
and exported by the REST app under ``/metrics``.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

handler_requests_total = Counter(
    "kuberoute_handler_requests_total",
    "Resource handler operations by outcome",
    ["operation", "kind", "outcome"],
)

transport_request_seconds = Histogram(
    "kuberoute_transport_request_seconds",
    "Latency of live requests against the API server",
    ["method"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

cache_objects = Gauge(
    "kuberoute_cache_objects",
    "Objects currently held in the informer cache",
    ["kind"],
)

informer_relists_total = Counter(
    "kuberoute_informer_relists_total",
    "Full relists performed by informers",
    ["kind"],
)

informer_errors_total = Counter(
    "kuberoute_informer_errors_total",
    "List/watch failures seen by informers",
    ["kind"],
)


def record_outcome(operation: str, kind: str, outcome: str) -> None:
    handler_requests_total.labels(operation=operation, kind=kind, outcome=outcome).inc()
