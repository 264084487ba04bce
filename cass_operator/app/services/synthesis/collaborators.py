"""
Collaborators of the synthesis layer.

Abstract interfaces for the pieces the synthesizers delegate to, along with
the implementations used by default:

- ConfigRenderer: turns a datacenter into the opaque config payload
- SecurityDecorator: adds management API transport security to a pod template
- PersistenceClient: writes the datacenter resource back to the API server
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import asyncio
import copy
import json
import logging

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from ...config import get_settings
from ...models import SERVER_CONTAINER_NAME, DatacenterSpec

logger = logging.getLogger(__name__)


class ConfigRenderError(Exception):
    """Raised when the datacenter configuration cannot be rendered."""
    pass


class SecurityDecorationError(Exception):
    """Raised when management API security cannot be applied to a pod template."""
    pass


class PersistenceError(Exception):
    """Raised when writing a datacenter resource fails."""
    pass


class ConflictError(PersistenceError):
    """
    Raised when a write was rejected because the resource changed since it was read.

    The caller should re-read the resource and retry.
    """
    pass


# =============================================================================
# Interfaces
# =============================================================================

class ConfigRenderer(ABC):
    @abstractmethod
    def render(self, dc: DatacenterSpec) -> str:
        """
        Render the full datacenter configuration to a single string.

        Raises:
            ConfigRenderError: If the configuration cannot be rendered
        """
        pass


class SecurityDecorator(ABC):
    @abstractmethod
    def decorate(self, dc: DatacenterSpec, template: client.V1PodTemplateSpec) -> None:
        """
        Mutate the pod template in place.

        Mutations made before a failure are not undone.

        Raises:
            SecurityDecorationError: If the template cannot be decorated
        """
        pass


class PersistenceClient(ABC):
    @abstractmethod
    async def update(self, dc: DatacenterSpec) -> DatacenterSpec:
        """
        Write the datacenter resource and return the stored version.

        Raises:
            ConflictError: If the stored resource version no longer matches
            PersistenceError: For any other failure
        """
        pass


# =============================================================================
# Config Rendering
# =============================================================================

class JsonConfigRenderer(ConfigRenderer):
    """
    Render the datacenter configuration as a JSON document.

    The user supplied config payload is merged with the cluster and datacenter
    identity, which always wins over user values. Keys are sorted so equal
    datacenters render to equal strings.
    """

    def render(self, dc: DatacenterSpec) -> str:
        values: Dict[str, Any] = copy.deepcopy(dc.server_config)

        cluster_info = dict(values.get("cluster-info") or {})
        cluster_info["name"] = dc.cluster_name
        cluster_info["seeds"] = dc.get_seed_service_name()
        values["cluster-info"] = cluster_info

        datacenter_info = dict(values.get("datacenter-info") or {})
        datacenter_info["name"] = dc.name
        values["datacenter-info"] = datacenter_info

        try:
            return json.dumps(values, sort_keys=True)
        except (TypeError, ValueError) as e:
            logger.error(f"[SYNTH] Failed to render config for datacenter {dc.namespace}/{dc.name}: {e}")
            raise ConfigRenderError(f"cannot render config for datacenter {dc.name}: {e}") from e


# =============================================================================
# Management API Security
# =============================================================================

MGMT_API_CERTS_VOLUME_NAME = "mgmt-api-server-certs"
MGMT_API_CERTS_MOUNT_PATH = "/management-api-certs"


class ManagementApiSecurityDecorator(SecurityDecorator):
    """
    Serve the management API over TLS when manual auth is configured.

    - No auth configured, or insecure: template left untouched
    - Manual: the server certificate secret is mounted into the server
      container and the management API is pointed at it
    """

    def decorate(self, dc: DatacenterSpec, template: client.V1PodTemplateSpec) -> None:
        auth = dc.management_api_auth
        if auth is None or auth.manual is None:
            return

        if auth.insecure:
            raise SecurityDecorationError(
                "management API auth must be either insecure or manual, not both"
            )

        secret_name = auth.manual.server_secret_name
        if not secret_name:
            raise SecurityDecorationError("manual management API auth requires serverSecretName")

        pod_spec = template.spec
        pod_spec.volumes = (pod_spec.volumes or []) + [
            client.V1Volume(
                name=MGMT_API_CERTS_VOLUME_NAME,
                secret=client.V1SecretVolumeSource(secret_name=secret_name)
            )
        ]

        container = next(
            (c for c in (pod_spec.containers or []) if c.name == SERVER_CONTAINER_NAME),
            None
        )
        if container is None:
            raise SecurityDecorationError(
                f"pod template has no '{SERVER_CONTAINER_NAME}' container to secure"
            )

        container.volume_mounts = (container.volume_mounts or []) + [
            client.V1VolumeMount(
                name=MGMT_API_CERTS_VOLUME_NAME,
                mount_path=MGMT_API_CERTS_MOUNT_PATH
            )
        ]
        container.env = (container.env or []) + [
            client.V1EnvVar(name="MGMT_API_TLS_CA_CERT_FILE", value=f"{MGMT_API_CERTS_MOUNT_PATH}/ca.crt"),
            client.V1EnvVar(name="MGMT_API_TLS_CERT_FILE", value=f"{MGMT_API_CERTS_MOUNT_PATH}/tls.crt"),
            client.V1EnvVar(name="MGMT_API_TLS_KEY_FILE", value=f"{MGMT_API_CERTS_MOUNT_PATH}/tls.key"),
        ]
        logger.debug(f"[SYNTH] Management API TLS enabled from secret {secret_name}")


# =============================================================================
# Persistence
# =============================================================================

class KubernetesPersistenceClient(PersistenceClient):
    """Replace CassandraDatacenter resources through the custom objects API."""

    def __init__(self, api: Optional[client.CustomObjectsApi] = None):
        self.settings = get_settings()

        if api is None:
            try:
                # Try in-cluster config first (for production)
                config.load_incluster_config()
                logger.info("Loaded in-cluster Kubernetes configuration")
            except config.ConfigException:
                try:
                    # Fall back to kubeconfig (for development)
                    config.load_kube_config()
                    logger.info("Loaded kubeconfig for development")
                except config.ConfigException as e:
                    logger.error(f"Failed to load Kubernetes config: {e}")
                    raise RuntimeError("Cannot load Kubernetes configuration") from e
            api = client.CustomObjectsApi()

        self.custom_objects = api

    async def update(self, dc: DatacenterSpec) -> DatacenterSpec:
        try:
            stored = await asyncio.to_thread(
                self.custom_objects.replace_namespaced_custom_object,
                group=self.settings.datacenter_crd_group,
                version=self.settings.datacenter_crd_version,
                namespace=dc.namespace,
                plural=self.settings.datacenter_crd_plural,
                name=dc.name,
                body=dc.to_resource()
            )
        except ApiException as e:
            if e.status == 409:
                logger.warning(f"[K8S] Datacenter {dc.namespace}/{dc.name} changed since it was read")
                raise ConflictError(
                    f"datacenter {dc.namespace}/{dc.name} was modified concurrently"
                ) from e
            logger.error(f"[K8S] Failed to update datacenter {dc.namespace}/{dc.name}: {e}")
            raise PersistenceError(f"failed to update datacenter {dc.namespace}/{dc.name}: {e.reason}") from e
        except Exception as e:
            logger.error(f"[K8S] Error updating datacenter {dc.namespace}/{dc.name}: {e}")
            raise PersistenceError(f"failed to update datacenter {dc.namespace}/{dc.name}: {e}") from e

        logger.debug(f"[K8S] Updated datacenter {dc.namespace}/{dc.name}")
        return DatacenterSpec.from_resource(stored)
