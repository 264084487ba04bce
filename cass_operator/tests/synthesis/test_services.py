"""
Unit tests for the datacenter headless services.
"""

import pytest

pytest.importorskip("kubernetes")

from kubernetes import client

from app.models import CLUSTER_LABEL, DATACENTER_LABEL, MANAGED_BY_LABEL, SEED_NODE_LABEL
from app.services.synthesis.services import (
    new_all_pods_service_for_datacenter,
    new_seed_service_for_datacenter,
    new_service_for_datacenter,
)


@pytest.mark.unit
class TestClientService:

    def test_headless_with_native_and_mgmt_ports(self, datacenter):
        service = new_service_for_datacenter(datacenter)

        assert isinstance(service, client.V1Service)
        assert service.metadata.name == "cluster1-dc1-service"
        assert service.metadata.namespace == "cassandra"
        assert service.spec.cluster_ip == "None"
        assert service.spec.type == "ClusterIP"
        assert [(p.name, p.port, p.target_port) for p in service.spec.ports] == [
            ("native", 9042, 9042),
            ("mgmt-api", 8080, 8080),
        ]

    def test_selects_datacenter_pods(self, datacenter):
        service = new_service_for_datacenter(datacenter)

        assert service.spec.selector == {
            CLUSTER_LABEL: "cluster1",
            DATACENTER_LABEL: "dc1",
        }
        assert not service.spec.publish_not_ready_addresses
        assert service.metadata.labels[MANAGED_BY_LABEL] == "cass-operator"


@pytest.mark.unit
class TestSeedService:

    def test_selects_only_seed_nodes(self, datacenter):
        service = new_seed_service_for_datacenter(datacenter)

        assert service.metadata.name == "cluster1-seed-service"
        assert service.spec.selector == {
            CLUSTER_LABEL: "cluster1",
            SEED_NODE_LABEL: "true",
        }

    def test_publishes_not_ready_addresses(self, datacenter):
        service = new_seed_service_for_datacenter(datacenter)

        assert service.spec.publish_not_ready_addresses is True
        assert service.spec.cluster_ip == "None"

    def test_labels_are_cluster_scoped(self, datacenter):
        service = new_seed_service_for_datacenter(datacenter)

        assert service.metadata.labels == {
            CLUSTER_LABEL: "cluster1",
            MANAGED_BY_LABEL: "cass-operator",
        }


@pytest.mark.unit
class TestAllPodsService:

    def test_selects_all_datacenter_pods(self, datacenter):
        service = new_all_pods_service_for_datacenter(datacenter)

        assert service.metadata.name == "cluster1-dc1-all-pods-service"
        assert SEED_NODE_LABEL not in service.spec.selector
        assert service.spec.selector == {
            CLUSTER_LABEL: "cluster1",
            DATACENTER_LABEL: "dc1",
        }

    def test_headless_and_publishes_not_ready(self, datacenter):
        service = new_all_pods_service_for_datacenter(datacenter)

        assert service.spec.cluster_ip == "None"
        assert service.spec.publish_not_ready_addresses is True


@pytest.mark.unit
def test_services_are_deterministic(datacenter):
    for build in (
        new_service_for_datacenter,
        new_seed_service_for_datacenter,
        new_all_pods_service_for_datacenter,
    ):
        first = build(datacenter)
        second = build(datacenter)
        assert first == second
        assert first.metadata.labels is not second.metadata.labels


@pytest.mark.unit
def test_service_labels_and_selector_are_not_shared(datacenter):
    service = new_service_for_datacenter(datacenter)

    assert service.metadata.labels is not service.spec.selector
    assert MANAGED_BY_LABEL not in service.spec.selector
