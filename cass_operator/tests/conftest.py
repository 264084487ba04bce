"""
Test configuration and fixtures for pytest.

Fixtures build CassandraDatacenter models in the shapes the synthesis tests
need: single rack, zoned racks, with and without persistent storage.
"""

import sys
import os
from pathlib import Path
import pytest

# Add the cass_operator directory to sys.path
operator_dir = Path(__file__).parent.parent
sys.path.insert(0, str(operator_dir))


def pytest_configure(config):
    """
    Pytest hook called before test collection.
    Sets up test environment variables and registers custom markers.
    """
    # Set test environment variables BEFORE any app imports
    os.environ["MANAGED_BY"] = "cass-operator"
    os.environ["SUPPORTED_SERVER_VERSIONS"] = "6.7.3,6.8.0"
    os.environ["LOG_LEVEL"] = "DEBUG"

    # Import and clear settings cache after env vars are set
    from app.config import get_settings
    get_settings.cache_clear()

    # Register custom markers
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "kubernetes: mark test as requiring the kubernetes client")


@pytest.fixture
def datacenter():
    """Single zoned rack, three nodes, 10Gi of persistent storage per node."""
    from app.models import DatacenterSpec

    return DatacenterSpec.model_validate({
        "name": "dc1",
        "namespace": "cassandra",
        "clusterName": "cluster1",
        "serverVersion": "6.8.0",
        "size": 3,
        "racks": [{"name": "rack1", "zone": "zoneA"}],
        "storageClaim": {"storageClassName": "server-storage", "size": "10Gi"},
        "resources": {
            "requests": {"cpu": "1", "memory": "4Gi"},
            "limits": {"cpu": "2", "memory": "4Gi"},
        },
        "config": {"cassandra-yaml": {"num_tokens": 16}},
    })


@pytest.fixture
def ephemeral_datacenter():
    """No racks declared, no storage claim, co-location allowed."""
    from app.models import DatacenterSpec

    return DatacenterSpec(
        name="dc2",
        namespace="cassandra",
        cluster_name="cluster1",
        server_version="6.7.3",
        size=1,
        allow_multiple_nodes_per_worker=True,
    )


@pytest.fixture
def multi_rack_datacenter():
    """Three racks over three zones, seven nodes."""
    from app.models import DatacenterSpec, Rack

    return DatacenterSpec(
        name="dc3",
        namespace="cassandra",
        cluster_name="cluster2",
        server_version="6.8.0",
        size=7,
        racks=[
            Rack(name="r1", zone="us-east-1a"),
            Rack(name="r2", zone="us-east-1b"),
            Rack(name="r3", zone="us-east-1c"),
        ],
    )
