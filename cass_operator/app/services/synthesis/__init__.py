"""
Resource Synthesis Module

Builds the Kubernetes objects a CassandraDatacenter needs to run:
- Labels: cluster / datacenter / rack label sets and the managed-by tag
- Services: client, seed and all-pods headless services
- Affinity: zone pinning and one-pod-per-worker anti-affinity
- StatefulSets: one per rack, with storage, probes and config init
- PodDisruptionBudget: one voluntary eviction at a time
- Progress label: idempotent Updating/Ready label on the datacenter

Everything except the progress label is a pure function of the datacenter;
applying the objects is up to the caller.
"""

from .labels import (
    get_cluster_labels,
    get_datacenter_labels,
    get_rack_labels,
    get_seed_labels,
    with_managed_by,
)
from .services import (
    new_service_for_datacenter,
    new_seed_service_for_datacenter,
    new_all_pods_service_for_datacenter,
)
from .affinity import build_affinity, calculate_node_affinity, calculate_pod_anti_affinity
from .collaborators import (
    ConfigRenderer,
    SecurityDecorator,
    PersistenceClient,
    JsonConfigRenderer,
    ManagementApiSecurityDecorator,
    KubernetesPersistenceClient,
    ConfigRenderError,
    SecurityDecorationError,
    PersistenceError,
    ConflictError,
)
from .statefulset import new_namespaced_name_for_statefulset, new_statefulset_for_datacenter
from .disruption_budget import new_pod_disruption_budget_for_datacenter
from .progress import ProgressLabelTransitioner, ProgressLabelUpdateError, compute_progress_label
from .datacenter import DesiredResources, calculate_rack_replicas, synthesize_datacenter

__all__ = [
    # Labels
    "get_cluster_labels",
    "get_datacenter_labels",
    "get_rack_labels",
    "get_seed_labels",
    "with_managed_by",
    # Services
    "new_service_for_datacenter",
    "new_seed_service_for_datacenter",
    "new_all_pods_service_for_datacenter",
    # Affinity
    "build_affinity",
    "calculate_node_affinity",
    "calculate_pod_anti_affinity",
    # Collaborators
    "ConfigRenderer",
    "SecurityDecorator",
    "PersistenceClient",
    "JsonConfigRenderer",
    "ManagementApiSecurityDecorator",
    "KubernetesPersistenceClient",
    "ConfigRenderError",
    "SecurityDecorationError",
    "PersistenceError",
    "ConflictError",
    # Workloads
    "new_namespaced_name_for_statefulset",
    "new_statefulset_for_datacenter",
    "new_pod_disruption_budget_for_datacenter",
    # Progress label
    "ProgressLabelTransitioner",
    "ProgressLabelUpdateError",
    "compute_progress_label",
    # Datacenter
    "DesiredResources",
    "calculate_rack_replicas",
    "synthesize_datacenter",
]
