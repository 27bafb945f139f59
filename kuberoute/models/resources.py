"""Resource descriptors and the payload types exchanged by the handler."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from kuberoute.errors import NamespaceRequired


class CacheReadiness(StrEnum):
    """Sync state of the cache coordinator.

    WARMING         -- no registered kind has completed its initial list.
    PARTIALLY_READY -- some kinds are synced; reads on the rest fail.
    READY           -- every registered kind is synced.
    """

    WARMING = "warming"
    PARTIALLY_READY = "partially_ready"
    READY = "ready"


class PropagationPolicy(StrEnum):
    """Garbage-collection policy applied to dependents on delete."""

    ORPHAN = "Orphan"
    BACKGROUND = "Background"
    FOREGROUND = "Foreground"


@dataclass(frozen=True)
class GroupVersionResource:
    """Wire identity of a resource collection on the API server.

    An empty ``group`` denotes the core ("legacy") API group.
    """

    group: str
    version: str
    resource: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    def __str__(self) -> str:
        return f"{self.group or 'core'}/{self.version}/{self.resource}"


@dataclass(frozen=True)
class ResourceDescriptor:
    """Immutable mapping from a kind to its wire resource and scoping rule."""

    kind: str
    gvr: GroupVersionResource
    namespaced: bool

    @property
    def resource(self) -> str:
        return self.gvr.resource

    def scope(self, namespace: str | None) -> str | None:
        """Return the namespace to apply for this resource, or None.

        Cluster-scoped resources discard whatever namespace the caller passed.
        """
        if not self.namespaced:
            return None
        if not namespace:
            raise NamespaceRequired(self.kind)
        return namespace


@dataclass(frozen=True)
class ObjectEnvelope:
    """Opaque payload exchanged verbatim with the API server.

    The handler never decodes ``raw``; it is forwarded on create/update and
    captured from the response body.
    """

    raw: bytes
    content_type: str = "application/json"

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> ObjectEnvelope:
        """Convenience constructor for callers holding a decoded manifest."""
        return cls(raw=json.dumps(obj).encode())

    def json(self) -> Any:
        return json.loads(self.raw)

    def __len__(self) -> int:
        return len(self.raw)


@dataclass(frozen=True)
class TypedObject:
    """Decoded object as held by the cache.

    ``body`` is the full decoded object; the remaining fields are lifted out
    of ``metadata`` for indexing and selector matching.
    """

    kind: str
    api_version: str
    namespace: str
    name: str
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    resource_version: str = ""
    uid: str = ""
    body: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, kind: str, raw: dict[str, Any], api_version: str = "") -> TypedObject:
        """Build a TypedObject from a raw API object.

        List responses omit ``kind``/``apiVersion`` on their items, so the
        caller supplies them from the descriptor.
        """
        metadata = raw.get("metadata") or {}
        return cls(
            kind=str(raw.get("kind") or kind),
            api_version=str(raw.get("apiVersion") or api_version),
            namespace=str(metadata.get("namespace") or ""),
            name=str(metadata.get("name") or ""),
            labels=dict(metadata.get("labels") or {}),
            annotations=dict(metadata.get("annotations") or {}),
            resource_version=str(metadata.get("resourceVersion") or ""),
            uid=str(metadata.get("uid") or ""),
            body=raw,
        )

    @property
    def key(self) -> str:
        """Store key: ``namespace/name`` for namespaced objects, else ``name``."""
        return object_key(self.namespace, self.name)


def object_key(namespace: str | None, name: str) -> str:
    if not namespace:
        return name
    return f"{namespace}/{name}"


@dataclass(frozen=True)
class Preconditions:
    """Delete preconditions; the API server rejects the delete on mismatch."""

    uid: str | None = None
    resource_version: str | None = None


@dataclass(frozen=True)
class DeleteOptions:
    """Caller-supplied options serialised as a meta/v1 DeleteOptions body."""

    propagation_policy: PropagationPolicy | None = None
    grace_period_seconds: int | None = None
    preconditions: Preconditions | None = None
    dry_run: tuple[str, ...] = ()

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"kind": "DeleteOptions", "apiVersion": "meta.k8s.io/v1"}
        if self.propagation_policy is not None:
            body["propagationPolicy"] = self.propagation_policy.value
        if self.grace_period_seconds is not None:
            body["gracePeriodSeconds"] = self.grace_period_seconds
        if self.preconditions is not None:
            pre: dict[str, str] = {}
            if self.preconditions.uid is not None:
                pre["uid"] = self.preconditions.uid
            if self.preconditions.resource_version is not None:
                pre["resourceVersion"] = self.preconditions.resource_version
            body["preconditions"] = pre
        if self.dry_run:
            body["dryRun"] = list(self.dry_run)
        return body

    def to_json(self) -> bytes:
        return json.dumps(self.to_body()).encode()
