"""Pydantic request/response schemas for the kuberoute REST API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from kuberoute.models.resources import DeleteOptions, Preconditions, PropagationPolicy


class ErrorResponse(BaseModel):
    """Error envelope returned by every non-2xx response."""

    error: str
    detail: str


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    version: str


class StatusResponse(BaseModel):
    """Cache readiness and indexing summary."""

    version: str
    cluster_id: str
    cache_state: str
    indexed_kinds: list[str]
    synced_kinds: list[str]
    object_counts: dict[str, int]


class KindInfo(BaseModel):
    kind: str
    group: str
    version: str
    resource: str
    namespaced: bool
    cached: bool


class PreconditionsBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uid: str | None = None
    resource_version: str | None = Field(default=None, alias="resourceVersion")


class DeleteOptionsBody(BaseModel):
    """Subset of meta/v1 DeleteOptions accepted on DELETE."""

    model_config = ConfigDict(populate_by_name=True)

    propagation_policy: PropagationPolicy | None = Field(default=None, alias="propagationPolicy")
    grace_period_seconds: int | None = Field(default=None, alias="gracePeriodSeconds", ge=0)
    preconditions: PreconditionsBody | None = None
    dry_run: list[Literal["All"]] = Field(default_factory=list, alias="dryRun")

    def to_options(self) -> DeleteOptions:
        pre = None
        if self.preconditions is not None:
            pre = Preconditions(uid=self.preconditions.uid, resource_version=self.preconditions.resource_version)
        return DeleteOptions(
            propagation_policy=self.propagation_policy,
            grace_period_seconds=self.grace_period_seconds,
            preconditions=pre,
            dry_run=tuple(self.dry_run),
        )


class ObjectList(BaseModel):
    """List response shaped like a Kubernetes ``<Kind>List``."""

    kind: str
    apiVersion: str  # noqa: N815
    items: list[dict[str, Any]]
