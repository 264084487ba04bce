"""
Headless Services for a datacenter.

- Client service: reach a ready node over CQL or the management API
- Seed service: seed nodes of the whole cluster, addressable before readiness
- All-pods service: every pod of the datacenter, ready or not
"""

from typing import Dict

from kubernetes import client

from ...models import MGMT_API_PORT, NATIVE_PORT, DatacenterSpec
from .labels import get_cluster_labels, get_datacenter_labels, get_seed_labels, with_managed_by


def _make_headless_service(
    dc: DatacenterSpec,
    name: str,
    labels: Dict[str, str],
    selector: Dict[str, str],
    publish_not_ready_addresses: bool = False
) -> client.V1Service:
    """
    Build a headless (clusterIP: None) Service in the datacenter namespace.

    Args:
        dc: Datacenter the service belongs to
        name: Service name
        labels: Labels for the service object
        selector: Pod selector
        publish_not_ready_addresses: Publish endpoints of pods that are not ready

    Returns:
        V1Service manifest
    """
    return client.V1Service(
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=dc.namespace,
            labels=labels
        ),
        spec=client.V1ServiceSpec(
            type="ClusterIP",
            cluster_ip="None",
            selector=selector,
            publish_not_ready_addresses=publish_not_ready_addresses
        )
    )


def new_service_for_datacenter(dc: DatacenterSpec) -> client.V1Service:
    """
    Create the client-facing service for the datacenter.

    Exposes the native protocol port and the management API port of ready nodes.
    """
    service = _make_headless_service(
        dc,
        name=dc.get_datacenter_service_name(),
        labels=with_managed_by(get_datacenter_labels(dc)),
        selector=get_datacenter_labels(dc)
    )
    service.spec.ports = [
        # Note: Port Names cannot be more than 15 characters
        client.V1ServicePort(name="native", port=NATIVE_PORT, target_port=NATIVE_PORT),
        client.V1ServicePort(name="mgmt-api", port=MGMT_API_PORT, target_port=MGMT_API_PORT),
    ]
    return service


def new_seed_service_for_datacenter(dc: DatacenterSpec) -> client.V1Service:
    """
    Create the seed service, attached to every seed node of the cluster.

    Seeds must resolve while the cluster is still bootstrapping, before any
    node passes readiness, so not-ready addresses are published.
    """
    return _make_headless_service(
        dc,
        name=dc.get_seed_service_name(),
        labels=with_managed_by(get_cluster_labels(dc)),
        selector=get_seed_labels(dc),
        publish_not_ready_addresses=True
    )


def new_all_pods_service_for_datacenter(dc: DatacenterSpec) -> client.V1Service:
    """Create a service covering all pods of the datacenter, ready or not."""
    return _make_headless_service(
        dc,
        name=dc.get_all_pods_service_name(),
        labels=with_managed_by(get_datacenter_labels(dc)),
        selector=get_datacenter_labels(dc),
        publish_not_ready_addresses=True
    )
