"""Cluster-wide pod listing."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from workload_restarter.integrations.kubernetes.models.workloads import PodRecord
from workload_restarter.services.kubernetes.base import K8sBaseManager

if TYPE_CHECKING:
    from workload_restarter.integrations.kubernetes.client import KubernetesClient

DEFAULT_PAGE_SIZE = 500


class WorkloadDirectory(K8sBaseManager):
    """Read-only view over the pods currently known to the cluster."""

    _entity_name = "pod"

    def __init__(self, client: KubernetesClient, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        """Initialize the directory.

        Args:
            client: Kubernetes API client instance.
            page_size: Number of pods requested per list call.
        """
        super().__init__(client)
        self._page_size = page_size

    def list_all_pods(self) -> Iterator[PodRecord]:
        """Yield every pod in every namespace, one page at a time.

        Pages are requested lazily as the caller consumes the iterator, so
        memory stays bounded by the page size on large clusters.

        Yields:
            Pod records in server listing order.

        Raises:
            KubernetesError: If any list request fails (``operation="list"``).
        """
        continue_token: str | None = None
        page = 0
        while True:
            page += 1
            self._log.debug("listing_pods", page=page, limit=self._page_size)
            try:
                kwargs: dict[str, object] = {
                    "limit": self._page_size,
                    "_request_timeout": self._client.request_timeout,
                }
                if continue_token:
                    kwargs["_continue"] = continue_token
                result = self._client.core_v1.list_pod_for_all_namespaces(**kwargs)
            except Exception as e:
                self._handle_api_error(e, "Pod", None, None, operation="list")

            items = result.items or []
            self._log.debug("listed_pods", page=page, count=len(items))
            for pod in items:
                yield PodRecord.from_k8s_object(pod)

            continue_token = getattr(result.metadata, "_continue", None)
            if not continue_token:
                return
