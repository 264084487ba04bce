"""
Scheduling constraints for datacenter pods.

Both constraints are hard (required during scheduling): a rack that cannot be
placed in its zone, or replicas that would share a worker, must stay pending
instead of being scheduled somewhere that weakens failure-domain isolation.
"""

from typing import Optional

from kubernetes import client

from ...config import get_settings
from ...models import CLUSTER_LABEL, DATACENTER_LABEL, RACK_LABEL, DatacenterSpec


def calculate_node_affinity(zone: str) -> Optional[client.V1NodeAffinity]:
    """
    Pin all pods of a rack to one zone.

    Args:
        zone: Zone of the rack ("" when the rack is not pinned)

    Returns:
        V1NodeAffinity requiring the zone label, or None for any node
    """
    if zone == "":
        return None

    return client.V1NodeAffinity(
        required_during_scheduling_ignored_during_execution=client.V1NodeSelector(
            node_selector_terms=[
                client.V1NodeSelectorTerm(
                    match_expressions=[
                        client.V1NodeSelectorRequirement(
                            key=get_settings().zone_label_key,
                            operator="In",
                            values=[zone]
                        )
                    ]
                )
            ]
        )
    )


def calculate_pod_anti_affinity(allow_multiple_nodes_per_worker: bool) -> Optional[client.V1PodAntiAffinity]:
    """
    Keep database pods away from each other, one per worker.

    Args:
        allow_multiple_nodes_per_worker: Allow co-located pods (no constraint)

    Returns:
        V1PodAntiAffinity at hostname granularity, or None
    """
    if allow_multiple_nodes_per_worker:
        return None

    return client.V1PodAntiAffinity(
        required_during_scheduling_ignored_during_execution=[
            client.V1PodAffinityTerm(
                label_selector=client.V1LabelSelector(
                    match_expressions=[
                        client.V1LabelSelectorRequirement(key=CLUSTER_LABEL, operator="Exists"),
                        client.V1LabelSelectorRequirement(key=DATACENTER_LABEL, operator="Exists"),
                        client.V1LabelSelectorRequirement(key=RACK_LABEL, operator="Exists"),
                    ]
                ),
                topology_key=get_settings().hostname_topology_key
            )
        ]
    )


def build_affinity(dc: DatacenterSpec, rack_name: str) -> client.V1Affinity:
    return client.V1Affinity(
        node_affinity=calculate_node_affinity(dc.get_rack_zone(rack_name)),
        pod_anti_affinity=calculate_pod_anti_affinity(dc.allow_multiple_nodes_per_worker)
    )
