"""Kubernetes API client wrapper.

Wraps the official kubernetes Python client with kubeconfig/in-cluster
loading, lazy API group initialization, retry helpers, and consistent
error translation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from urllib3.exceptions import HTTPError, TimeoutError as Urllib3TimeoutError

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

if TYPE_CHECKING:
    from kubernetes.client import AppsV1Api, CoreV1Api, VersionApi

    from workload_restarter.integrations.kubernetes.config import RestarterConfig

logger = structlog.get_logger()


class KubernetesClient:
    """Single-cluster Kubernetes API client.

    Wraps the official kubernetes Python client with:
    - Kubeconfig loading with in-cluster fallback
    - Lazy API group initialization
    - Retry decorators built with tenacity
    - Consistent error translation to custom exceptions
    - Context manager support

    Example:
        ```python
        from workload_restarter.integrations.kubernetes import KubernetesClient
        from workload_restarter.integrations.kubernetes.config import RestarterConfig

        config = RestarterConfig.from_env()
        with KubernetesClient(config) as client:
            pods = client.core_v1.list_pod_for_all_namespaces(limit=10)
        ```
    """

    def __init__(self, config: RestarterConfig) -> None:
        """Initialize Kubernetes client from the run configuration.

        Args:
            config: Restart run configuration.

        Raises:
            KubernetesConnectionError: If no usable configuration can be loaded.
        """
        self._config = config
        self._retries = config.retry_attempts
        self._current_context: str | None = None

        self._core_v1: CoreV1Api | None = None
        self._apps_v1: AppsV1Api | None = None
        self._version_api: VersionApi | None = None

        self._load_config()

        logger.info("Kubernetes client initialized", context=self._current_context)

    def _load_config(self) -> None:
        """Load Kubernetes configuration from kubeconfig or in-cluster."""
        from kubernetes import config
        from kubernetes.config import ConfigException

        try:
            config.load_kube_config(
                config_file=self._config.kubeconfig,
                context=self._config.context,
            )
            self._current_context = self._config.context or "default"
            logger.debug(
                "loaded_kubeconfig",
                context=self._config.context,
                kubeconfig=self._config.kubeconfig,
            )
        except ConfigException as e:
            # An explicitly requested kubeconfig must not silently fall back.
            if self._config.kubeconfig:
                raise KubernetesConnectionError(
                    message=f"Cannot load kubeconfig '{self._config.kubeconfig}'",
                    original_error=e,
                ) from e
            try:
                config.load_incluster_config()
                self._current_context = "in-cluster"
                logger.debug("loaded_incluster_config")
            except ConfigException as incluster_error:
                raise KubernetesConnectionError(
                    message="Cannot load Kubernetes configuration. "
                    "Ensure kubeconfig exists or running inside a cluster.",
                    original_error=incluster_error,
                ) from incluster_error

        self._invalidate_api_cache()

    def _invalidate_api_cache(self) -> None:
        """Clear cached API group instances."""
        self._core_v1 = None
        self._apps_v1 = None
        self._version_api = None

    # =========================================================================
    # Lazy API Group Accessors
    # =========================================================================

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance (pods)."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api()
        return self._core_v1

    @property
    def apps_v1(self) -> AppsV1Api:
        """Get AppsV1Api instance (deployments, statefulsets)."""
        if self._apps_v1 is None:
            from kubernetes.client import AppsV1Api

            self._apps_v1 = AppsV1Api()
        return self._apps_v1

    @property
    def version_api(self) -> VersionApi:
        """Get VersionApi instance for connectivity checks."""
        if self._version_api is None:
            from kubernetes.client import VersionApi

            self._version_api = VersionApi()
        return self._version_api

    def get_current_context(self) -> str:
        """Get the current active context name.

        Returns:
            The current context name, or 'in-cluster' if running inside a pod.
        """
        return self._current_context or "unknown"

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
        operation: str | None = None,
        timeout_seconds: int | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes client failure to a custom exception.

        Args:
            e: The original exception.
            resource_type: Type of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.
            operation: Remote operation that failed ("list", "get", "update").
            timeout_seconds: Request timeout in effect, reported on timeouts.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException

        if isinstance(e, KubernetesError):
            return e

        if isinstance(e, Urllib3TimeoutError):
            return KubernetesTimeoutError(
                message=str(e) or "Request timed out",
                timeout_seconds=timeout_seconds,
                operation=operation,
            )

        if isinstance(e, (HTTPError, OSError)):
            return KubernetesConnectionError(
                message=f"Transport failure: {e}",
                original_error=e,
                operation=operation,
            )

        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
                operation=operation,
            )

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Authentication/authorization failed",
                status_code=status,
                reason=e.reason,
                operation=operation,
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
                operation=operation,
            )

        if status == 409:
            return KubernetesConflictError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
                operation=operation,
            )

        if status in (400, 422):
            return KubernetesValidationError(
                message=e.reason or "Validation failed",
                status_code=status,
                operation=operation,
            )

        # status 0 means the request never got a response
        if not status or status >= 500:
            return KubernetesUnavailableError(
                message=e.reason or "Kubernetes API unavailable",
                status_code=status or None,
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
                operation=operation,
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
            operation=operation,
        )

    # =========================================================================
    # Retry Decorators
    # =========================================================================

    def make_retry_decorator(self) -> Any:
        """Create a retry decorator for transient connection errors.

        Returns:
            A tenacity retry decorator configured with exponential backoff.
        """
        return retry(
            retry=retry_if_exception_type(KubernetesConnectionError),
            stop=stop_after_attempt(max(self._retries, 1)),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    @staticmethod
    def make_conflict_retry_decorator(retries: int) -> Any:
        """Create a retry decorator for optimistic-lock conflicts.

        Args:
            retries: Additional attempts after the first conflict. Zero means
                the first conflict is raised immediately.

        Returns:
            A tenacity retry decorator with a short exponential backoff.
        """
        return retry(
            retry=retry_if_exception_type(KubernetesConflictError),
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(multiplier=0.2, min=0, max=2),
            reraise=True,
        )

    # =========================================================================
    # Connection Check
    # =========================================================================

    def check_connection(self) -> None:
        """Verify the API server answers, retrying transient connection errors.

        Raises:
            KubernetesUnavailableError: If the cluster cannot be reached.
        """

        @self.make_retry_decorator()
        def _probe() -> None:
            try:
                self.version_api.get_code(_request_timeout=self.request_timeout)
            except Exception as e:
                raise self.translate_api_exception(
                    e, operation="version", timeout_seconds=self.request_timeout
                ) from e

        _probe()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def request_timeout(self) -> int:
        """Per-request timeout in seconds."""
        return self._config.timeout

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the client and release resources."""
        self._invalidate_api_cache()
        logger.debug("Kubernetes client closed")

    def __enter__(self) -> KubernetesClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
