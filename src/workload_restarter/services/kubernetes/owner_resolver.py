"""Owner resolution for matched pods.

Classifies a pod by its controller reference. Resolution is purely local:
the reference's kind and name are taken as recorded on the pod and no API
call is made to confirm the owner still exists.
"""

from __future__ import annotations

from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict

from workload_restarter.integrations.kubernetes.models.workloads import (
    ControllerKind,
    PodRecord,
)

logger = structlog.get_logger()

_SUPPORTED_KINDS = frozenset(kind.value for kind in ControllerKind)


class SupportedOwner(BaseModel):
    """Pod controlled by a Deployment or StatefulSet."""

    model_config = ConfigDict(frozen=True)

    outcome: Literal["supported"] = "supported"
    kind: ControllerKind
    name: str
    namespace: str


class UnsupportedOwner(BaseModel):
    """Pod controlled by some other kind (ReplicaSet, DaemonSet, Job, ...)."""

    model_config = ConfigDict(frozen=True)

    outcome: Literal["unsupported_kind"] = "unsupported_kind"
    kind: str


class NoControllerOwner(BaseModel):
    """Pod without a usable controller reference."""

    model_config = ConfigDict(frozen=True)

    outcome: Literal["no_controller"] = "no_controller"


OwnerOutcome = SupportedOwner | UnsupportedOwner | NoControllerOwner


def resolve_owner(pod: PodRecord) -> OwnerOutcome:
    """Determine which controller, if any, manages ``pod``.

    Args:
        pod: The pod to classify.

    Returns:
        ``SupportedOwner`` for a Deployment/StatefulSet controller,
        ``UnsupportedOwner`` for any other controller kind, and
        ``NoControllerOwner`` when the pod has no controller reference or,
        in violation of the API's invariant, more than one.
    """
    controllers = pod.controller_references

    if not controllers:
        return NoControllerOwner()

    if len(controllers) > 1:
        logger.warning(
            "multiple_controller_references",
            pod=pod.name,
            namespace=pod.namespace,
            kinds=[ref.kind for ref in controllers],
        )
        return NoControllerOwner()

    ref = controllers[0]
    if not ref.name:
        return NoControllerOwner()

    kind = ref.kind or ""
    if kind in _SUPPORTED_KINDS:
        return SupportedOwner(kind=ControllerKind(kind), name=ref.name, namespace=pod.namespace)
    return UnsupportedOwner(kind=kind or "<unknown>")
