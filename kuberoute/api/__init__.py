"""REST API layer for kuberoute.

Exposes:
    create_app -- FastAPI application factory.
    build_app  -- Alias for create_app (used by kuberoute.app bootstrap).
"""

from kuberoute.api.app import create_app

build_app = create_app

__all__ = ["build_app", "create_app"]
