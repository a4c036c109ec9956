"""Kubernetes integration - API client, configuration and exceptions."""

from workload_restarter.integrations.kubernetes.client import KubernetesClient
from workload_restarter.integrations.kubernetes.config import RestarterConfig
from workload_restarter.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesUnavailableError,
    KubernetesValidationError,
)

__all__ = [
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConflictError",
    "KubernetesConnectionError",
    "KubernetesError",
    "KubernetesNotFoundError",
    "KubernetesTimeoutError",
    "KubernetesUnavailableError",
    "KubernetesValidationError",
    "RestarterConfig",
]
