"""REST routes for kuberoute.

Each resource route is a thin adapter over ``ResourceHandler``: request
bodies are forwarded as raw bytes and mutation responses are returned
verbatim.  Cluster-scoped kinds accept ``_`` as the namespace segment.

All handlers are ``async def`` so that cache reads run on the event loop,
the same thread the informers write from.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Body, Query, Request, Response
from fastapi.responses import JSONResponse

from kuberoute.api.schemas import (
    DeleteOptionsBody,
    ErrorResponse,
    HealthResponse,
    KindInfo,
    ObjectList,
    StatusResponse,
)
from kuberoute.models.resources import ObjectEnvelope

if TYPE_CHECKING:
    from kuberoute.handler import ResourceHandler

router = APIRouter()

CLUSTER_NAMESPACE_PLACEHOLDER = "_"


def _handler(request: Request) -> ResourceHandler:
    return request.app.state.handler  # type: ignore[no-any-return]


def _namespace(segment: str) -> str | None:
    return None if segment == CLUSTER_NAMESPACE_PLACEHOLDER else segment


# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    from kuberoute import __version__

    return HealthResponse(version=__version__)


@router.get("/status", response_model=StatusResponse)
async def status(request: Request) -> StatusResponse:
    from kuberoute import __version__

    cache = request.app.state.cache
    return StatusResponse(
        version=__version__,
        cluster_id=request.app.state.cluster_id,
        cache_state=str(cache.readiness()),
        indexed_kinds=cache.indexed_kinds(),
        synced_kinds=cache.synced_kinds(),
        object_counts=cache.object_counts(),
    )


@router.get("/kinds", response_model=list[KindInfo])
async def kinds(request: Request) -> list[KindInfo]:
    registry = _handler(request).registry
    cache = request.app.state.cache
    indexed = set(cache.indexed_kinds())
    result = []
    for descriptor in sorted(registry.descriptors(), key=lambda d: d.kind):
        result.append(
            KindInfo(
                kind=descriptor.kind,
                group=descriptor.gvr.group,
                version=descriptor.gvr.version,
                resource=descriptor.gvr.resource,
                namespaced=descriptor.namespaced,
                cached=descriptor.kind in indexed,
            )
        )
    return result


# ---------------------------------------------------------------------------
# Mutating path
# ---------------------------------------------------------------------------


@router.post("/kinds/{kind}/namespaces/{namespace}", status_code=201)
async def create_object(kind: str, namespace: str, request: Request) -> Response:
    body = await request.body()
    if not body:
        return _empty_body()
    envelope = await _handler(request).create(kind, _namespace(namespace), ObjectEnvelope(raw=body))
    return Response(content=envelope.raw, media_type=envelope.content_type, status_code=201)


@router.put("/kinds/{kind}/namespaces/{namespace}/{name}")
async def update_object(kind: str, namespace: str, name: str, request: Request) -> Response:
    body = await request.body()
    if not body:
        return _empty_body()
    envelope = await _handler(request).update(kind, _namespace(namespace), name, ObjectEnvelope(raw=body))
    return Response(content=envelope.raw, media_type=envelope.content_type)


@router.delete("/kinds/{kind}/namespaces/{namespace}/{name}", status_code=204)
async def delete_object(
    kind: str,
    namespace: str,
    name: str,
    request: Request,
    options: DeleteOptionsBody | None = Body(default=None),
) -> Response:
    await _handler(request).delete(
        kind,
        _namespace(namespace),
        name,
        options.to_options() if options is not None else None,
    )
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


@router.get("/kinds/{kind}/namespaces/{namespace}/{name}")
async def get_object(kind: str, namespace: str, name: str, request: Request) -> JSONResponse:
    obj = _handler(request).get(kind, _namespace(namespace), name)
    return JSONResponse(content=obj.body)


@router.get("/kinds/{kind}/namespaces/{namespace}", response_model=ObjectList)
async def list_objects(
    kind: str,
    namespace: str,
    request: Request,
    label_selector: str = Query(default="", alias="labelSelector"),
) -> ObjectList:
    handler = _handler(request)
    objects = handler.list(kind, _namespace(namespace), label_selector)
    descriptor = handler.resolve(kind)
    return ObjectList(
        kind=f"{descriptor.kind}List",
        apiVersion=descriptor.gvr.api_version,
        items=[obj.body for obj in objects],
    )


def _empty_body() -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="INVALID_BODY", detail="Request body must not be empty.").model_dump(),
    )
