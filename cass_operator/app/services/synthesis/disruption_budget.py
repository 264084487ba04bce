"""PodDisruptionBudget for a datacenter."""

from kubernetes import client

from ...models import DatacenterSpec
from .labels import get_datacenter_labels, with_managed_by


def new_pod_disruption_budget_for_datacenter(dc: DatacenterSpec) -> client.V1PodDisruptionBudget:
    """
    Allow exactly one voluntary eviction at a time across the datacenter.

    min_available is size - 1 regardless of replication factor, so a
    datacenter of size 1 gets 0 and no disruption protection.
    """
    return client.V1PodDisruptionBudget(
        metadata=client.V1ObjectMeta(
            name=f"{dc.name}-pdb",
            namespace=dc.namespace,
            labels=with_managed_by(get_datacenter_labels(dc))
        ),
        spec=client.V1PodDisruptionBudgetSpec(
            selector=client.V1LabelSelector(
                match_labels=get_datacenter_labels(dc)
            ),
            min_available=dc.size - 1
        )
    )
