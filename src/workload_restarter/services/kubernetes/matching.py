"""Pod name matching."""

from __future__ import annotations

from workload_restarter.integrations.kubernetes.config import DEFAULT_MATCH
from workload_restarter.integrations.kubernetes.models.workloads import PodRecord


def matches(pod: PodRecord, needle: str = DEFAULT_MATCH) -> bool:
    """Return True if the pod's name contains ``needle`` (case-sensitive)."""
    return needle in pod.name
