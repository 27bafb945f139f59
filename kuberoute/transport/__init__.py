"""Live transport to the Kubernetes API server.

Exposes:
    HttpTransport -- httpx-based client used for mutations and informer list/watch.
    resource_path -- URL path builder for a descriptor / namespace / name.
"""

from kuberoute.transport.http import HttpTransport, resource_path

__all__ = ["HttpTransport", "resource_path"]
