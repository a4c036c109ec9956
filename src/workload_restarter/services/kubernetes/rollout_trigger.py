"""Rollout restart of Deployments and StatefulSets.

A restart is a read-modify-write of the controller object: fetch it, set the
``kubectl.kubernetes.io/restartedAt`` annotation on its pod template, and
replace it with the fetched ``resourceVersion`` still attached. The
controller then rolls its pods through its own update strategy. If another
client changed the object in between, the API server rejects the replace
with 409 and the restart fails with ``KubernetesConflictError``.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, ClassVar

from workload_restarter.integrations.kubernetes.client import KubernetesClient
from workload_restarter.integrations.kubernetes.exceptions import (
    KubernetesError,
    KubernetesValidationError,
)
from workload_restarter.integrations.kubernetes.models.base import _safe_get_item
from workload_restarter.integrations.kubernetes.models.workloads import (
    RESTARTED_AT_ANNOTATION,
    ControllerKind,
)
from workload_restarter.services.kubernetes.base import K8sBaseManager

if TYPE_CHECKING:
    from kubernetes.client import AppsV1Api

MARKER_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _parse_marker(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        return None
    return parsed.astimezone(UTC)


def next_restart_marker(previous: str | None = None, now: datetime | None = None) -> str:
    """Build the restartedAt value for the next restart.

    The value is the current UTC time in the RFC 3339 form ``kubectl rollout
    restart`` writes. When that would not be strictly later than the marker
    already present (two restarts within one second, or clock skew against
    whoever wrote the previous one), the previous marker plus one second is
    used so every restart changes the pod template.

    Args:
        previous: Marker currently on the pod template, if any.
        now: Override for the current time.

    Returns:
        Timestamp such as ``2024-01-15T10:30:00Z``.
    """
    current = (now or datetime.now(UTC)).astimezone(UTC).replace(microsecond=0)
    if previous:
        last = _parse_marker(previous)
        if last is not None and current <= last:
            current = last.replace(microsecond=0) + timedelta(seconds=1)
    return current.strftime(MARKER_FORMAT)


@dataclass
class RestartResult:
    """Outcome of one successful rollout trigger."""

    kind: ControllerKind
    namespace: str
    name: str
    marker: str
    previous_marker: str | None = None
    resource_version: str | None = None
    new_resource_version: str | None = None
    dry_run: bool = False


class ControllerStore(ABC):
    """Fetch/mutate/write capability for one controller kind.

    Objects travel as the API server's raw JSON rather than the client's
    typed models. Typed models keep only the fields the installed client
    knows about, so replacing one would strip newer fields from the live
    controller.
    """

    kind: ClassVar[ControllerKind]

    def __init__(self, client: KubernetesClient) -> None:
        self._client = client

    @property
    def _apps(self) -> AppsV1Api:
        return self._client.apps_v1

    @abstractmethod
    def _read(self, namespace: str, name: str) -> Any:
        """Issue the get request, returning the undecoded response."""

    @abstractmethod
    def _replace(self, namespace: str, name: str, body: dict[str, Any]) -> Any:
        """Issue the replace request, returning the undecoded response."""

    @staticmethod
    def _decode(response: Any) -> dict[str, Any]:
        data = response.data
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        decoded: dict[str, Any] = json.loads(data)
        return decoded

    def _translate(self, e: Exception, name: str, namespace: str, operation: str) -> KubernetesError:
        return self._client.translate_api_exception(
            e,
            str(self.kind),
            name,
            namespace,
            operation=operation,
            timeout_seconds=self._client.request_timeout,
        )

    def fetch(self, namespace: str, name: str) -> dict[str, Any]:
        """Read the controller object as raw JSON.

        Raises:
            KubernetesNotFoundError: The controller no longer exists.
            KubernetesUnavailableError: Transport or auth failure.
        """
        try:
            return self._decode(self._read(namespace, name))
        except Exception as e:
            raise self._translate(e, name, namespace, "get") from e

    def template_annotations(self, obj: dict[str, Any]) -> dict[str, str]:
        """Return the pod template's annotation mapping, creating it if absent."""
        template = _safe_get_item(obj, "spec", "template")
        if not isinstance(template, dict):
            raise KubernetesValidationError(
                message=f"{self.kind} has no pod template",
                status_code=None,
                operation="get",
            )
        if not isinstance(template.get("metadata"), dict):
            template["metadata"] = {}
        metadata = template["metadata"]
        if not isinstance(metadata.get("annotations"), dict):
            metadata["annotations"] = {}
        annotations: dict[str, str] = metadata["annotations"]
        return annotations

    def with_restart_marker(self, obj: dict[str, Any], marker: str) -> dict[str, Any]:
        """Set the restart marker on ``obj`` in place, leaving other keys untouched."""
        self.template_annotations(obj)[RESTARTED_AT_ANNOTATION] = marker
        return obj

    def write(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace the stored object with ``obj``, carrying its resourceVersion.

        Raises:
            KubernetesConflictError: The object changed since it was read.
            KubernetesUnavailableError: Transport or auth failure.
        """
        namespace = _safe_get_item(obj, "metadata", "namespace")
        name = _safe_get_item(obj, "metadata", "name")
        try:
            return self._decode(self._replace(namespace, name, obj))
        except Exception as e:
            raise self._translate(e, name, namespace, "update") from e


class DeploymentStore(ControllerStore):
    """Deployments via apps/v1."""

    kind = ControllerKind.DEPLOYMENT

    def _read(self, namespace: str, name: str) -> Any:
        return self._apps.read_namespaced_deployment(
            name=name,
            namespace=namespace,
            _preload_content=False,
            _request_timeout=self._client.request_timeout,
        )

    def _replace(self, namespace: str, name: str, body: dict[str, Any]) -> Any:
        return self._apps.replace_namespaced_deployment(
            name=name,
            namespace=namespace,
            body=body,
            _preload_content=False,
            _request_timeout=self._client.request_timeout,
        )


class StatefulSetStore(ControllerStore):
    """StatefulSets via apps/v1."""

    kind = ControllerKind.STATEFUL_SET

    def _read(self, namespace: str, name: str) -> Any:
        return self._apps.read_namespaced_stateful_set(
            name=name,
            namespace=namespace,
            _preload_content=False,
            _request_timeout=self._client.request_timeout,
        )

    def _replace(self, namespace: str, name: str, body: dict[str, Any]) -> Any:
        return self._apps.replace_namespaced_stateful_set(
            name=name,
            namespace=namespace,
            body=body,
            _preload_content=False,
            _request_timeout=self._client.request_timeout,
        )


STORE_TYPES: dict[ControllerKind, type[ControllerStore]] = {
    ControllerKind.DEPLOYMENT: DeploymentStore,
    ControllerKind.STATEFUL_SET: StatefulSetStore,
}


class RolloutTrigger(K8sBaseManager):
    """Triggers rollout restarts of supported controllers.

    Equivalent to ``kubectl rollout restart``, but writes with a full
    replace so a concurrent change to the controller is never clobbered.
    """

    _entity_name = "controller"

    def __init__(
        self,
        client: KubernetesClient,
        *,
        conflict_retries: int = 0,
        dry_run: bool = False,
    ) -> None:
        """Initialize the trigger.

        Args:
            client: Kubernetes API client instance.
            conflict_retries: Extra fetch/mutate/write cycles after a 409.
            dry_run: Compute the marker but skip the write.
        """
        super().__init__(client)
        self._conflict_retries = conflict_retries
        self._dry_run = dry_run
        self._stores = {kind: store_type(client) for kind, store_type in STORE_TYPES.items()}

    @property
    def dry_run(self) -> bool:
        """Whether writes are skipped."""
        return self._dry_run

    def trigger_restart(self, kind: ControllerKind, namespace: str, name: str) -> RestartResult:
        """Request one rollout of the controller's pods.

        Each successful call writes a new marker, so calling it twice
        produces two rollouts.

        Args:
            kind: Controller kind.
            namespace: Controller namespace.
            name: Controller name.

        Returns:
            Details of the write that was made (or would be, in dry-run mode).

        Raises:
            KubernetesNotFoundError: The controller does not exist.
            KubernetesConflictError: The controller changed during the update.
            KubernetesUnavailableError: The API server could not be reached.
        """
        store = self._stores[kind]
        retrying = KubernetesClient.make_conflict_retry_decorator(self._conflict_retries)
        return retrying(self._restart_once)(store, namespace, name)

    def _restart_once(self, store: ControllerStore, namespace: str, name: str) -> RestartResult:
        log = self._log.bind(kind=str(store.kind), name=name, namespace=namespace)
        log.info("restarting_controller", dry_run=self._dry_run)

        obj = store.fetch(namespace, name)
        resource_version = _safe_get_item(obj, "metadata", "resourceVersion")
        previous = store.template_annotations(obj).get(RESTARTED_AT_ANNOTATION)
        marker = next_restart_marker(previous)
        store.with_restart_marker(obj, marker)

        result = RestartResult(
            kind=store.kind,
            namespace=namespace,
            name=name,
            marker=marker,
            previous_marker=previous,
            resource_version=resource_version,
            dry_run=self._dry_run,
        )

        if self._dry_run:
            log.info("restart_dry_run", marker=marker)
            return result

        try:
            written = store.write(obj)
        except Exception as e:
            log.warning("restart_write_failed", error=str(e), resource_version=resource_version)
            raise
        result.new_resource_version = _safe_get_item(written, "metadata", "resourceVersion")
        log.info("restarted_controller", marker=marker, resource_version=result.new_resource_version)
        return result
