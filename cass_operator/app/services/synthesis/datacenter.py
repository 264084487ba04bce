"""
Desired state of a whole datacenter.

Bundles the per-datacenter objects with one StatefulSet per rack, splitting
the declared size across racks.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging

from kubernetes import client

from ...models import DatacenterSpec
from .collaborators import ConfigRenderer, SecurityDecorator
from .disruption_budget import new_pod_disruption_budget_for_datacenter
from .services import (
    new_all_pods_service_for_datacenter,
    new_seed_service_for_datacenter,
    new_service_for_datacenter,
)
from .statefulset import new_statefulset_for_datacenter

logger = logging.getLogger(__name__)


@dataclass
class DesiredResources:
    services: List[client.V1Service] = field(default_factory=list)
    stateful_sets: List[client.V1StatefulSet] = field(default_factory=list)
    pod_disruption_budget: Optional[client.V1PodDisruptionBudget] = None


def calculate_rack_replicas(dc: DatacenterSpec) -> Dict[str, int]:
    """
    Split the datacenter size across its racks, in declaration order.

    The first size % len(racks) racks get one extra replica.

    Raises:
        ValueError: If two racks share a name; each rack name maps to exactly
            one StatefulSet
    """
    racks = dc.get_racks()
    base, extra = divmod(dc.size, len(racks))

    replicas: Dict[str, int] = {}
    for i, rack in enumerate(racks):
        if rack.name in replicas:
            logger.error(f"[SYNTH] Duplicate rack '{rack.name}' in datacenter {dc.namespace}/{dc.name}")
            raise ValueError(f"duplicate rack name '{rack.name}' in datacenter {dc.namespace}/{dc.name}")
        replicas[rack.name] = base + (1 if i < extra else 0)
    return replicas


def synthesize_datacenter(
    dc: DatacenterSpec,
    config_renderer: Optional[ConfigRenderer] = None,
    security_decorator: Optional[SecurityDecorator] = None
) -> DesiredResources:
    """
    Build every object the datacenter needs.

    Raises:
        Any error raised by new_statefulset_for_datacenter; nothing is
        returned for the datacenter in that case.
    """
    stateful_sets = [
        new_statefulset_for_datacenter(
            rack_name,
            dc,
            replicas,
            config_renderer=config_renderer,
            security_decorator=security_decorator
        )
        for rack_name, replicas in calculate_rack_replicas(dc).items()
    ]

    return DesiredResources(
        services=[
            new_service_for_datacenter(dc),
            new_seed_service_for_datacenter(dc),
            new_all_pods_service_for_datacenter(dc),
        ],
        stateful_sets=stateful_sets,
        pod_disruption_budget=new_pod_disruption_budget_for_datacenter(dc)
    )
