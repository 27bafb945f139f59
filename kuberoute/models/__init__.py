"""Core data structures for kuberoute."""

from kuberoute.models.config import KubeRouteConfig
from kuberoute.models.resources import (
    CacheReadiness,
    DeleteOptions,
    GroupVersionResource,
    ObjectEnvelope,
    Preconditions,
    PropagationPolicy,
    ResourceDescriptor,
    TypedObject,
)

__all__ = [
    "CacheReadiness",
    "DeleteOptions",
    "GroupVersionResource",
    "KubeRouteConfig",
    "ObjectEnvelope",
    "Preconditions",
    "PropagationPolicy",
    "ResourceDescriptor",
    "TypedObject",
]
