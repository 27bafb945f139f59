"""FastAPI application factory for kuberoute.

Usage::

    from kuberoute.api.app import create_app

    app = create_app(handler=handler, cache=cache, config=config)

The factory is used by both the production bootstrap (``kuberoute.app``)
and unit tests.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from kuberoute.api.routes import router
from kuberoute.api.schemas import ErrorResponse
from kuberoute.errors import (
    CacheUnavailable,
    InvalidSelector,
    KubeRouteError,
    NamespaceRequired,
    NotFound,
    TransportError,
    UnsupportedKind,
)

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"

# (status code, error code) per handler error type; TransportError is special-cased.
_ERROR_MAP: dict[type[KubeRouteError], tuple[int, str]] = {
    UnsupportedKind: (400, "UNSUPPORTED_KIND"),
    InvalidSelector: (400, "INVALID_SELECTOR"),
    NamespaceRequired: (400, "NAMESPACE_REQUIRED"),
    NotFound: (404, "NOT_FOUND"),
    CacheUnavailable: (503, "CACHE_UNAVAILABLE"),
}


def create_app(
    handler: Any,
    cache: Any,
    config: Any = None,
) -> FastAPI:
    """Create and configure the kuberoute FastAPI application.

    Args:
        handler: ResourceHandler instance serving all resource routes.
        cache:   CacheCoordinator, used for /status and /kinds.
        config:  KubeRouteConfig.  Used for cluster_id metadata.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from kuberoute import __version__

    cluster_id: str = ""
    if config is not None and hasattr(config, "cluster_id"):
        cluster_id = config.cluster_id or ""

    app = FastAPI(
        title="kuberoute",
        summary="Kubernetes resource access façade",
        version=__version__,
        description=(
            "kuberoute forwards create/update/delete to the Kubernetes API server "
            "and serves get/list from an informer cache."
        ),
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
    )

    app.state.handler = handler
    app.state.cache = cache
    app.state.config = config
    app.state.cluster_id = cluster_id

    app.include_router(router, prefix=_API_PREFIX)
    app.mount("/metrics", make_asgi_app())

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(KubeRouteError)
    async def handler_exception_handler(
        request: Request,
        exc: KubeRouteError,
    ) -> JSONResponse:
        """Map the handler's error taxonomy onto HTTP statuses."""
        if isinstance(exc, TransportError):
            status_code = exc.status_code if exc.status_code >= 400 else 502
            error_code = "UPSTREAM_ERROR"
        else:
            status_code, error_code = next(
                (mapped for exc_type, mapped in _ERROR_MAP.items() if isinstance(exc, exc_type)),
                (500, "INTERNAL_ERROR"),
            )
        _log.debug(
            "request_failed",
            path=str(request.url.path),
            method=request.method,
            error=error_code,
            status_code=status_code,
        )
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=error_code, detail=str(exc)).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Map Pydantic validation errors (delete options, query params) to our envelope."""
        errors = exc.errors()
        first_msg = str(errors[0].get("msg", "")) if errors else ""
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="INVALID_REQUEST", detail=first_msg).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
