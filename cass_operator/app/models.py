"""
Datacenter Resource Model

Pydantic representation of a CassandraDatacenter custom resource, plus the
label keys and enumerations shared by the synthesis layer.

Field names are snake_case in Python and camelCase on the wire, so a model can
be parsed straight from the custom resource body and rendered back into one.
"""

from enum import Enum
import copy
from typing import Any, Dict, List, Optional
import logging

from kubernetes import client
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .config import get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Label Keys
# =============================================================================

CLUSTER_LABEL = "cassandra.datastax.com/cluster"
DATACENTER_LABEL = "cassandra.datastax.com/datacenter"
RACK_LABEL = "cassandra.datastax.com/rack"
SEED_NODE_LABEL = "cassandra.datastax.com/seed-node"
NODE_STATE_LABEL = "cassandra.datastax.com/node-state"
OPERATOR_PROGRESS_LABEL = "cassandra.datastax.com/operator-progress"
MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"

# Initial value of NODE_STATE_LABEL; later transitions belong to the pod itself
NODE_STATE_READY_TO_START = "Ready-to-Start"

# Ports
NATIVE_PORT = 9042
INTER_NODE_MSG_PORT = 8609
INTRA_NODE_PORT = 7000
TLS_INTRA_NODE_PORT = 7001
MGMT_API_PORT = 8080

DEFAULT_RACK_NAME = "default"

# Pod template names
SERVER_CONTAINER_NAME = "cassandra"
CONFIG_VOLUME_NAME = "server-config"
LOGS_VOLUME_NAME = "server-logs"
DATA_VOLUME_NAME = "server-data"


class UnsupportedServerVersionError(Exception):
    """Raised when no server image can be resolved for a datacenter."""
    pass


class ProgressState(str, Enum):
    """
    Values of the operator progress label on a datacenter.

    Attributes:
        UPDATING: The reconciler is making changes to the datacenter
        READY: The datacenter matches its desired state
    """

    UPDATING = "Updating"
    READY = "Ready"

    @classmethod
    def from_string(cls, value: str) -> "ProgressState":
        """
        Convert a label value to ProgressState.

        Raises:
            ValueError: If value is not a valid progress state
        """
        for state in cls:
            if state.value == value:
                return state
        valid_states = ", ".join([s.value for s in cls])
        raise ValueError(
            f"Invalid progress state: '{value}'. Valid states: {valid_states}"
        )

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Spec Models
# =============================================================================

class ResourceModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Rack(ResourceModel):
    name: str
    zone: str = ""


class StorageClaim(ResourceModel):
    """Per-replica persistent storage. Access mode is always ReadWriteOnce."""
    storage_class_name: str
    size: str = "5Gi"


class ResourceRequirements(ResourceModel):
    requests: Dict[str, str] = Field(default_factory=dict)
    limits: Dict[str, str] = Field(default_factory=dict)


class ManualAuth(ResourceModel):
    server_secret_name: str = ""


class ManagementApiAuth(ResourceModel):
    insecure: bool = False
    manual: Optional[ManualAuth] = None


class DatacenterSpec(ResourceModel):
    """
    A single datacenter of a cluster.

    Metadata (name, namespace, labels, resource_version) is flattened onto
    the model next to the spec fields. Unknown spec fields, the rest of the
    stored metadata (annotations, finalizers, ownerReferences) and the status
    are preserved so that writing the resource back does not drop them.
    """

    # Metadata
    name: str
    namespace: str = "default"
    labels: Dict[str, str] = Field(default_factory=dict)
    resource_version: Optional[str] = None
    # Stored metadata and status as read, written back untouched
    raw_metadata: Dict[str, Any] = Field(default_factory=dict, exclude=True)
    status: Optional[Dict[str, Any]] = Field(default=None, exclude=True)

    # Spec
    cluster_name: str
    server_version: str = ""
    size: int
    racks: List[Rack] = Field(default_factory=list)
    storage_claim: Optional[StorageClaim] = None
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)
    server_image: str = ""
    config_builder_image: str = ""
    allow_multiple_nodes_per_worker: bool = False
    service_account: str = ""
    server_config: Dict[str, Any] = Field(default_factory=dict, alias="config")
    management_api_auth: Optional[ManagementApiAuth] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "allow"

    # -------------------------------------------------------------------------
    # Topology
    # -------------------------------------------------------------------------

    def get_racks(self) -> List[Rack]:
        """Declared racks, or a single zone-less default rack when none are declared."""
        if self.racks:
            return list(self.racks)
        return [Rack(name=DEFAULT_RACK_NAME)]

    def get_rack_zone(self, rack_name: str) -> str:
        """Zone of the named rack, "" when the rack is unknown or unpinned."""
        zone = ""
        for rack in self.get_racks():
            if rack.name == rack_name:
                zone = rack.zone
        return zone

    # -------------------------------------------------------------------------
    # Naming
    # -------------------------------------------------------------------------

    def get_datacenter_service_name(self) -> str:
        return f"{self.cluster_name}-{self.name}-service"

    def get_seed_service_name(self) -> str:
        # Seeds are shared by every datacenter of the cluster
        return f"{self.cluster_name}-seed-service"

    def get_all_pods_service_name(self) -> str:
        return f"{self.cluster_name}-{self.name}-all-pods-service"

    def get_service_account(self) -> str:
        return self.service_account or get_settings().default_service_account

    # -------------------------------------------------------------------------
    # Images and Ports
    # -------------------------------------------------------------------------

    def get_server_image(self) -> str:
        """
        Resolve the server container image.

        An explicit server_image always wins. Otherwise the image is built from
        the default repository and server_version, which must be supported.

        Raises:
            UnsupportedServerVersionError: If no image can be resolved
        """
        if self.server_image:
            return self.server_image

        settings = get_settings()
        if self.server_version in settings.supported_server_version_list:
            return f"{settings.default_server_repository}:{self.server_version}"

        logger.error(
            f"[SYNTH] No image for server version '{self.server_version}' "
            f"in datacenter {self.namespace}/{self.name}"
        )
        raise UnsupportedServerVersionError(
            f"server version '{self.server_version}' is not supported and no server image was specified"
        )

    def get_config_builder_image(self) -> str:
        return self.config_builder_image or get_settings().config_builder_image

    def get_container_ports(self) -> List[client.V1ContainerPort]:
        # Note: Port Names cannot be more than 15 characters
        return [
            client.V1ContainerPort(name="native", container_port=NATIVE_PORT),
            client.V1ContainerPort(name="inter-node-msg", container_port=INTER_NODE_MSG_PORT),
            client.V1ContainerPort(name="intra-node", container_port=INTRA_NODE_PORT),
            client.V1ContainerPort(name="tls-intra-node", container_port=TLS_INTRA_NODE_PORT),
            client.V1ContainerPort(name="mgmt-api-http", container_port=MGMT_API_PORT),
        ]

    # -------------------------------------------------------------------------
    # Custom Resource Conversion
    # -------------------------------------------------------------------------

    @classmethod
    def from_resource(cls, body: Dict[str, Any]) -> "DatacenterSpec":
        """Build a DatacenterSpec from a CassandraDatacenter resource body."""
        metadata = body.get("metadata") or {}
        return cls.model_validate({
            **(body.get("spec") or {}),
            "name": metadata.get("name"),
            "namespace": metadata.get("namespace", "default"),
            "labels": metadata.get("labels") or {},
            "resourceVersion": metadata.get("resourceVersion"),
            "raw_metadata": copy.deepcopy(metadata),
            "status": copy.deepcopy(body.get("status")),
        })

    def to_resource(self) -> Dict[str, Any]:
        """
        Render this datacenter as a CassandraDatacenter resource body.

        The body is meant for a full replace, so everything read by
        from_resource is carried back. Spec fields that were never set are
        left out rather than written as their Python defaults.
        """
        settings = get_settings()

        metadata = copy.deepcopy(self.raw_metadata)
        metadata.update({
            "name": self.name,
            "namespace": self.namespace,
            "labels": dict(self.labels),
        })
        metadata.pop("resourceVersion", None)
        if self.resource_version:
            # Carrying the version makes the API server reject stale writes
            metadata["resourceVersion"] = self.resource_version

        spec = self.model_dump(
            by_alias=True,
            exclude={"name", "namespace", "labels", "resource_version"},
            exclude_unset=True,
            exclude_none=True,
        )

        body = {
            "apiVersion": f"{settings.datacenter_crd_group}/{settings.datacenter_crd_version}",
            "kind": "CassandraDatacenter",
            "metadata": metadata,
            "spec": spec,
        }
        if self.status is not None:
            body["status"] = copy.deepcopy(self.status)
        return body
