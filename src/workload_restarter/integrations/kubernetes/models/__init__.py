"""Kubernetes resource models used by the restart pass."""

from workload_restarter.integrations.kubernetes.models.base import OwnerReference
from workload_restarter.integrations.kubernetes.models.workloads import (
    RESTARTED_AT_ANNOTATION,
    ControllerKind,
    PodRecord,
)

__all__ = [
    "RESTARTED_AT_ANNOTATION",
    "ControllerKind",
    "OwnerReference",
    "PodRecord",
]
