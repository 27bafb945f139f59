"""Informer cache for kuberoute.

Keeps an eventually-consistent, per-resource replica of cluster objects that
serves the handler's read path.  Nothing here ever mutates the cluster.

Submodules:
    store       -- ObjectStore: per-resource index keyed namespace/name.
    informer    -- Informer: list-then-watch sync loop with relist and back-off.
    lister      -- Lister: read-only CacheAccessor over a store.
    coordinator -- CacheCoordinator: one informer per indexed resource.
"""

from kuberoute.cache.coordinator import CacheCoordinator
from kuberoute.cache.informer import Informer
from kuberoute.cache.lister import Lister
from kuberoute.cache.store import ObjectStore

__all__ = ["CacheCoordinator", "Informer", "Lister", "ObjectStore"]
