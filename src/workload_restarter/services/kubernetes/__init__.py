"""Kubernetes restart services.

Pod listing, name matching, owner resolution, rollout triggering and the
single-pass orchestrator that ties them together.
"""

from workload_restarter.services.kubernetes.matching import matches
from workload_restarter.services.kubernetes.owner_resolver import (
    NoControllerOwner,
    OwnerOutcome,
    SupportedOwner,
    UnsupportedOwner,
    resolve_owner,
)
from workload_restarter.services.kubernetes.restart_orchestrator import (
    PodOutcome,
    RestartOrchestrator,
    RunSummary,
)
from workload_restarter.services.kubernetes.rollout_trigger import (
    ControllerStore,
    DeploymentStore,
    RestartResult,
    RolloutTrigger,
    StatefulSetStore,
    next_restart_marker,
)
from workload_restarter.services.kubernetes.workload_directory import WorkloadDirectory

__all__ = [
    "ControllerStore",
    "DeploymentStore",
    "NoControllerOwner",
    "OwnerOutcome",
    "PodOutcome",
    "RestartOrchestrator",
    "RestartResult",
    "RolloutTrigger",
    "RunSummary",
    "StatefulSetStore",
    "SupportedOwner",
    "UnsupportedOwner",
    "WorkloadDirectory",
    "matches",
    "next_restart_marker",
    "resolve_owner",
]
