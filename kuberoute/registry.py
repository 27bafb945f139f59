"""Static kind registry.

Maps each supported kind to the wire resource it is served under and whether
it is namespace-scoped.  The table is built once at import time and never
mutated; ``KindRegistry`` instances can be built over a custom table for
clusters that serve extra resources.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from kuberoute.models.resources import GroupVersionResource, ResourceDescriptor


def _d(kind: str, group: str, version: str, resource: str, namespaced: bool = True) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=kind,
        gvr=GroupVersionResource(group=group, version=version, resource=resource),
        namespaced=namespaced,
    )


_BUILTIN: tuple[ResourceDescriptor, ...] = (
    # core/v1
    _d("ConfigMap", "", "v1", "configmaps"),
    _d("Endpoints", "", "v1", "endpoints"),
    _d("Event", "", "v1", "events"),
    _d("LimitRange", "", "v1", "limitranges"),
    _d("Namespace", "", "v1", "namespaces", namespaced=False),
    _d("Node", "", "v1", "nodes", namespaced=False),
    _d("PersistentVolume", "", "v1", "persistentvolumes", namespaced=False),
    _d("PersistentVolumeClaim", "", "v1", "persistentvolumeclaims"),
    _d("Pod", "", "v1", "pods"),
    _d("ReplicationController", "", "v1", "replicationcontrollers"),
    _d("ResourceQuota", "", "v1", "resourcequotas"),
    _d("Secret", "", "v1", "secrets"),
    _d("Service", "", "v1", "services"),
    _d("ServiceAccount", "", "v1", "serviceaccounts"),
    # apps/v1
    _d("ControllerRevision", "apps", "v1", "controllerrevisions"),
    _d("DaemonSet", "apps", "v1", "daemonsets"),
    _d("Deployment", "apps", "v1", "deployments"),
    _d("ReplicaSet", "apps", "v1", "replicasets"),
    _d("StatefulSet", "apps", "v1", "statefulsets"),
    # batch/v1
    _d("CronJob", "batch", "v1", "cronjobs"),
    _d("Job", "batch", "v1", "jobs"),
    # autoscaling/v2
    _d("HorizontalPodAutoscaler", "autoscaling", "v2", "horizontalpodautoscalers"),
    # networking.k8s.io/v1
    _d("Ingress", "networking.k8s.io", "v1", "ingresses"),
    _d("IngressClass", "networking.k8s.io", "v1", "ingressclasses", namespaced=False),
    _d("NetworkPolicy", "networking.k8s.io", "v1", "networkpolicies"),
    # policy/v1
    _d("PodDisruptionBudget", "policy", "v1", "poddisruptionbudgets"),
    # rbac.authorization.k8s.io/v1
    _d("ClusterRole", "rbac.authorization.k8s.io", "v1", "clusterroles", namespaced=False),
    _d("ClusterRoleBinding", "rbac.authorization.k8s.io", "v1", "clusterrolebindings", namespaced=False),
    _d("Role", "rbac.authorization.k8s.io", "v1", "roles"),
    _d("RoleBinding", "rbac.authorization.k8s.io", "v1", "rolebindings"),
    # storage.k8s.io/v1
    _d("StorageClass", "storage.k8s.io", "v1", "storageclasses", namespaced=False),
    # apiextensions.k8s.io/v1
    _d("CustomResourceDefinition", "apiextensions.k8s.io", "v1", "customresourcedefinitions", namespaced=False),
)


class KindRegistry(Mapping[str, ResourceDescriptor]):
    """Read-only kind → descriptor mapping.

    Raises ValueError at construction if two descriptors claim the same kind.
    """

    def __init__(self, descriptors: Iterable[ResourceDescriptor] = _BUILTIN) -> None:
        table: dict[str, ResourceDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.kind in table:
                raise ValueError(f"Duplicate descriptor for kind {descriptor.kind!r}")
            table[descriptor.kind] = descriptor
        self._table = MappingProxyType(table)

    def lookup(self, kind: str) -> ResourceDescriptor | None:
        return self._table.get(kind)

    def descriptors(self) -> list[ResourceDescriptor]:
        return list(self._table.values())

    def __getitem__(self, kind: str) -> ResourceDescriptor:
        return self._table[kind]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)


DEFAULT_REGISTRY = KindRegistry()
