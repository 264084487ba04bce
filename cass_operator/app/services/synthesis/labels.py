"""
Label sets for datacenter resources.

Every function returns a fresh dict built from its inputs, so label sets can
be handed to several objects without aliasing. Provenance (managed-by) is
added with with_managed_by() at the point an object is constructed.
"""

from typing import Dict, Mapping

from ...config import get_settings
from ...models import (
    CLUSTER_LABEL,
    DATACENTER_LABEL,
    MANAGED_BY_LABEL,
    RACK_LABEL,
    SEED_NODE_LABEL,
    DatacenterSpec,
)


def get_cluster_labels(dc: DatacenterSpec) -> Dict[str, str]:
    return {
        CLUSTER_LABEL: dc.cluster_name,
    }


def get_datacenter_labels(dc: DatacenterSpec) -> Dict[str, str]:
    labels = get_cluster_labels(dc)
    labels[DATACENTER_LABEL] = dc.name
    return labels


def get_rack_labels(dc: DatacenterSpec, rack_name: str) -> Dict[str, str]:
    labels = get_datacenter_labels(dc)
    labels[RACK_LABEL] = rack_name
    return labels


def get_seed_labels(dc: DatacenterSpec) -> Dict[str, str]:
    """Cluster labels narrowed to seed nodes."""
    labels = get_cluster_labels(dc)
    labels[SEED_NODE_LABEL] = "true"
    return labels


def with_managed_by(labels: Mapping[str, str]) -> Dict[str, str]:
    """Return a copy of labels carrying the managed-by provenance tag."""
    return {
        **labels,
        MANAGED_BY_LABEL: get_settings().managed_by,
    }
