"""
Operator progress label on the datacenter resource.

The label has two values (Updating, Ready). Transition timing is decided by
the reconciler; this module only makes sure a transition writes to the API
server when the stored value actually changes.
"""

from typing import Optional, Tuple
import logging

from ...models import OPERATOR_PROGRESS_LABEL, DatacenterSpec, ProgressState
from .collaborators import ConflictError, PersistenceClient, PersistenceError

logger = logging.getLogger(__name__)


class ProgressLabelUpdateError(Exception):
    """Raised when the progress label could not be written."""

    def __init__(self, label: str, value: str, conflict: bool = False):
        self.label = label
        self.value = value
        self.conflict = conflict
        reason = "resource version conflict" if conflict else "write failed"
        super().__init__(f"error updating label {label}={value}: {reason}")


def compute_progress_label(current: Optional[str], desired: ProgressState) -> Tuple[str, bool]:
    """
    Compute the label value for a transition.

    Args:
        current: Stored label value (None when the label is absent)
        desired: Target state

    Returns:
        (new value, whether it differs from the stored value)
    """
    value = desired.value
    return value, current != value


class ProgressLabelTransitioner:
    """Idempotent writer for the operator progress label."""

    def __init__(self, persistence_client: PersistenceClient):
        self.persistence_client = persistence_client

    async def transition(self, dc: DatacenterSpec, desired: ProgressState) -> bool:
        """
        Move the datacenter's progress label to the desired state.

        No write is issued when the label already holds the desired value. After
        a successful write, dc carries the stored labels, metadata and resource
        version, so repeating the call is a no-op.

        Args:
            dc: Datacenter to label
            desired: Target state

        Returns:
            True if the label was written, False if it was already set

        Raises:
            ProgressLabelUpdateError: If the write fails; conflict is set when
                the datacenter changed since it was read
        """
        value, changed = compute_progress_label(dc.labels.get(OPERATOR_PROGRESS_LABEL), desired)
        if not changed:
            # early return, no need to ping k8s
            return False

        updated = dc.model_copy(deep=True)
        updated.labels = {**dc.labels, OPERATOR_PROGRESS_LABEL: value}

        try:
            stored = await self.persistence_client.update(updated)
        except PersistenceError as e:
            logger.error(
                f"[K8S] Error updating label {OPERATOR_PROGRESS_LABEL}={value} "
                f"on datacenter {dc.namespace}/{dc.name}: {e}"
            )
            raise ProgressLabelUpdateError(
                OPERATOR_PROGRESS_LABEL, value, conflict=isinstance(e, ConflictError)
            ) from e

        dc.labels = dict(stored.labels)
        dc.resource_version = stored.resource_version
        dc.raw_metadata = stored.raw_metadata
        dc.status = stored.status
        logger.info(f"[K8S] Datacenter {dc.namespace}/{dc.name} progress: {value}")
        return True
