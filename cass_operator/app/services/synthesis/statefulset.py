"""
StatefulSet synthesis, one per rack.

Pod layout:
- Init container (server-config-init): expands CONFIG_FILE_DATA into the
  shared server-config volume
- Server container (cassandra): started through the management API, with
  liveness/readiness probes against it
- Logger sidecar (server-system-logger): tails the server log from the
  shared server-logs volume

Pods are created in parallel; any startup ordering is left to the caller.
"""

from typing import List, Optional
import logging

from kubernetes import client

from ...config import get_settings
from ...models import (
    CONFIG_VOLUME_NAME,
    DATA_VOLUME_NAME,
    LOGS_VOLUME_NAME,
    MGMT_API_PORT,
    NODE_STATE_LABEL,
    NODE_STATE_READY_TO_START,
    RACK_LABEL,
    SERVER_CONTAINER_NAME,
    DatacenterSpec,
)
from .affinity import build_affinity
from .collaborators import (
    ConfigRenderer,
    JsonConfigRenderer,
    ManagementApiSecurityDecorator,
    SecurityDecorator,
)
from .labels import get_rack_labels, with_managed_by

logger = logging.getLogger(__name__)

CONFIG_MOUNT_PATH = "/config"
LOGS_MOUNT_PATH = "/var/log/cassandra"
DATA_MOUNT_PATH = "/var/lib/cassandra"

LIVENESS_PROBE_PATH = "/api/v0/probes/liveness"
READINESS_PROBE_PATH = "/api/v0/probes/readiness"


def new_namespaced_name_for_statefulset(dc: DatacenterSpec, rack_name: str) -> client.V1ObjectMeta:
    """Stable name/namespace of a rack's StatefulSet."""
    return client.V1ObjectMeta(
        name=f"{dc.cluster_name}-{dc.name}-{rack_name}-sts",
        namespace=dc.namespace
    )


def _create_volume_claim_templates(dc: DatacenterSpec, rack_name: str) -> List[client.V1PersistentVolumeClaim]:
    """
    Claim templates for the rack: exactly one when storage is declared, else none.

    Claim templates cannot change once the StatefulSet exists, so the choice
    made here is permanent for the workload.
    """
    storage_claim = dc.storage_claim
    if storage_claim is None:
        return []

    return [
        client.V1PersistentVolumeClaim(
            metadata=client.V1ObjectMeta(
                name=DATA_VOLUME_NAME,
                labels=with_managed_by(get_rack_labels(dc, rack_name))
            ),
            spec=client.V1PersistentVolumeClaimSpec(
                access_modes=["ReadWriteOnce"],
                storage_class_name=storage_claim.storage_class_name,
                resources=client.V1VolumeResourceRequirements(
                    requests={"storage": storage_claim.size}
                )
            )
        )
    ]


def _create_init_container(dc: DatacenterSpec, config_data: str) -> client.V1Container:
    # NOTE: the payload travels in a single env var; its size is not checked here
    return client.V1Container(
        name="server-config-init",
        image=dc.get_config_builder_image(),
        volume_mounts=[
            client.V1VolumeMount(name=CONFIG_VOLUME_NAME, mount_path=CONFIG_MOUNT_PATH)
        ],
        env=[
            client.V1EnvVar(name="CONFIG_FILE_DATA", value=config_data),
            client.V1EnvVar(
                name="POD_IP",
                value_from=client.V1EnvVarSource(
                    field_ref=client.V1ObjectFieldSelector(field_path="status.podIP")
                )
            ),
            client.V1EnvVar(
                name="RACK_NAME",
                value_from=client.V1EnvVarSource(
                    field_ref=client.V1ObjectFieldSelector(
                        field_path=f"metadata.labels['{RACK_LABEL}']"
                    )
                )
            ),
            client.V1EnvVar(name="PRODUCT_VERSION", value=dc.server_version),
        ]
    )


def _create_server_container(dc: DatacenterSpec, image: str, ports: List[client.V1ContainerPort]) -> client.V1Container:
    volume_mounts = [
        client.V1VolumeMount(name=CONFIG_VOLUME_NAME, mount_path=CONFIG_MOUNT_PATH),
        client.V1VolumeMount(name=LOGS_VOLUME_NAME, mount_path=LOGS_MOUNT_PATH),
    ]
    if dc.storage_claim is not None:
        volume_mounts.append(
            client.V1VolumeMount(name=DATA_VOLUME_NAME, mount_path=DATA_MOUNT_PATH)
        )

    return client.V1Container(
        name=SERVER_CONTAINER_NAME,
        image=image,
        resources=client.V1ResourceRequirements(
            requests=dict(dc.resources.requests) or None,
            limits=dict(dc.resources.limits) or None
        ),
        env=[
            client.V1EnvVar(name="DS_LICENSE", value="accept"),
            client.V1EnvVar(name="DSE_AUTO_CONF_OFF", value="all"),
            client.V1EnvVar(name="USE_MGMT_API", value="true"),
            client.V1EnvVar(name="DSE_MGMT_EXPLICIT_START", value="true"),
        ],
        ports=ports,
        # Readiness starts later than liveness so a slow start does not flap
        liveness_probe=client.V1Probe(
            http_get=client.V1HTTPGetAction(path=LIVENESS_PROBE_PATH, port=MGMT_API_PORT),
            initial_delay_seconds=15,
            period_seconds=15
        ),
        readiness_probe=client.V1Probe(
            http_get=client.V1HTTPGetAction(path=READINESS_PROBE_PATH, port=MGMT_API_PORT),
            initial_delay_seconds=20,
            period_seconds=10
        ),
        volume_mounts=volume_mounts
    )


def _create_logger_container() -> client.V1Container:
    return client.V1Container(
        name="server-system-logger",
        image=get_settings().system_logger_image,
        args=["/bin/sh", "-c", f"tail -n+1 -F {LOGS_MOUNT_PATH}/system.log"],
        volume_mounts=[
            client.V1VolumeMount(name=LOGS_VOLUME_NAME, mount_path=LOGS_MOUNT_PATH)
        ]
    )


def new_statefulset_for_datacenter(
    rack_name: str,
    dc: DatacenterSpec,
    replica_count: int,
    config_renderer: Optional[ConfigRenderer] = None,
    security_decorator: Optional[SecurityDecorator] = None
) -> client.V1StatefulSet:
    """
    Create the StatefulSet for one rack of the datacenter.

    Args:
        rack_name: Rack the StatefulSet runs
        dc: Datacenter
        replica_count: Number of pods for the rack
        config_renderer: Renders the config payload (default: JsonConfigRenderer)
        security_decorator: Secures the pod template (default: ManagementApiSecurityDecorator)

    Returns:
        V1StatefulSet manifest

    Raises:
        ConfigRenderError: If the config payload cannot be rendered
        UnsupportedServerVersionError: If the server image cannot be resolved
        SecurityDecorationError: If the pod template cannot be secured; the
            partially decorated template is lost with the exception
    """
    config_renderer = config_renderer or JsonConfigRenderer()
    security_decorator = security_decorator or ManagementApiSecurityDecorator()
    settings = get_settings()

    # Everything that can fail before assembly is resolved first
    config_data = config_renderer.render(dc)
    ports = dc.get_container_ports()
    image = dc.get_server_image()

    pod_labels = with_managed_by(get_rack_labels(dc, rack_name))
    pod_labels[NODE_STATE_LABEL] = NODE_STATE_READY_TO_START

    user_id = settings.server_user_id

    template = client.V1PodTemplateSpec(
        metadata=client.V1ObjectMeta(labels=pod_labels),
        spec=client.V1PodSpec(
            affinity=build_affinity(dc, rack_name),
            security_context=client.V1PodSecurityContext(
                run_as_user=user_id,
                run_as_group=user_id,
                fs_group=user_id
            ),
            volumes=[
                client.V1Volume(name=CONFIG_VOLUME_NAME, empty_dir=client.V1EmptyDirVolumeSource()),
                client.V1Volume(name=LOGS_VOLUME_NAME, empty_dir=client.V1EmptyDirVolumeSource()),
            ],
            init_containers=[_create_init_container(dc, config_data)],
            service_account_name=dc.get_service_account(),
            containers=[
                _create_server_container(dc, image, ports),
                _create_logger_container(),
            ]
        )
    )

    try:
        security_decorator.decorate(dc, template)
    except Exception as e:
        logger.error(f"[SYNTH] Failed to secure pod template for rack {rack_name} of {dc.namespace}/{dc.name}: {e}")
        raise

    meta = new_namespaced_name_for_statefulset(dc, rack_name)
    meta.labels = with_managed_by(get_rack_labels(dc, rack_name))

    logger.debug(f"[SYNTH] Built StatefulSet {meta.namespace}/{meta.name} with {replica_count} replicas")

    return client.V1StatefulSet(
        metadata=meta,
        spec=client.V1StatefulSetSpec(
            selector=client.V1LabelSelector(
                match_labels=get_rack_labels(dc, rack_name)
            ),
            replicas=replica_count,
            service_name=dc.get_datacenter_service_name(),
            pod_management_policy="Parallel",
            template=template,
            volume_claim_templates=_create_volume_claim_templates(dc, rack_name)
        )
    )
