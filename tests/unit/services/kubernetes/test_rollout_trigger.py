"""Unit tests for RolloutTrigger and restart markers."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from workload_restarter.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesNotFoundError,
    KubernetesUnavailableError,
    KubernetesValidationError,
)
from workload_restarter.integrations.kubernetes.models.workloads import (
    RESTARTED_AT_ANNOTATION,
    ControllerKind,
)
from workload_restarter.services.kubernetes.rollout_trigger import (
    DeploymentStore,
    RolloutTrigger,
    StatefulSetStore,
    next_restart_marker,
)


def _marker_of(obj: Any) -> str | None:
    annotations = obj["spec"]["template"]["metadata"].get("annotations") or {}
    return annotations.get(RESTARTED_AT_ANNOTATION)


@pytest.mark.unit
class TestNextRestartMarker:
    """Tests for next_restart_marker()."""

    def test_formats_current_utc_time(self) -> None:
        """Should render the time as RFC 3339 UTC with a Z suffix."""
        now = datetime(2024, 1, 15, 10, 30, 0, 123456, tzinfo=UTC)

        assert next_restart_marker(now=now) == "2024-01-15T10:30:00Z"

    def test_later_than_previous_uses_now(self) -> None:
        """Should use the current time when it is already later."""
        now = datetime(2024, 1, 15, 10, 30, 5, tzinfo=UTC)

        assert next_restart_marker("2024-01-15T10:30:00Z", now) == "2024-01-15T10:30:05Z"

    def test_same_second_bumps_previous(self) -> None:
        """Two restarts in one second still produce distinct markers."""
        now = datetime(2024, 1, 15, 10, 30, 0, 900000, tzinfo=UTC)

        assert next_restart_marker("2024-01-15T10:30:00Z", now) == "2024-01-15T10:30:01Z"

    def test_previous_in_future_bumps_previous(self) -> None:
        """A marker ahead of our clock is still advanced."""
        now = datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC)

        assert next_restart_marker("2024-01-15T11:00:00Z", now) == "2024-01-15T11:00:01Z"

    def test_unparseable_previous_is_ignored(self) -> None:
        """A marker written by something else in another format is overwritten."""
        now = datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)

        assert next_restart_marker("yesterday", now) == "2024-01-15T10:30:00Z"

    def test_previous_with_offset(self) -> None:
        """Markers with a numeric offset are compared in UTC."""
        now = datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)

        assert next_restart_marker("2024-01-15T12:30:00+02:00", now) == "2024-01-15T10:30:01Z"


@pytest.mark.unit
@pytest.mark.kubernetes
class TestControllerStores:
    """Tests for the per-kind stores."""

    def test_annotations_created_when_absent(
        self, fake_client: Any, deployment_factory: Callable[..., Any]
    ) -> None:
        """Should create the template annotation map when missing."""
        deployment = deployment_factory("database")
        del deployment["spec"]["template"]["metadata"]

        annotations = DeploymentStore(fake_client).template_annotations(deployment)

        assert annotations == {}
        assert deployment["spec"]["template"]["metadata"]["annotations"] is annotations

    def test_missing_template_is_validation_error(self, fake_client: Any) -> None:
        """An object without a pod template cannot be restarted."""
        obj = {"metadata": {"name": "database"}, "spec": {"replicas": 1}}

        with pytest.raises(KubernetesValidationError):
            StatefulSetStore(fake_client).template_annotations(obj)

    def test_fetch_missing_is_not_found(self, fake_client: Any) -> None:
        """Should translate 404 with the controller identity."""
        with pytest.raises(KubernetesNotFoundError) as exc_info:
            StatefulSetStore(fake_client).fetch("data", "gone")

        assert exc_info.value.resource_type == "StatefulSet"
        assert exc_info.value.resource_name == "gone"
        assert exc_info.value.operation == "get"


@pytest.mark.unit
@pytest.mark.kubernetes
class TestRolloutTrigger:
    """Tests for RolloutTrigger.trigger_restart()."""

    def test_restart_deployment(
        self, fake_client: Any, apps_api: Any, deployment_factory: Callable[..., Any]
    ) -> None:
        """Should write the marker with the fetched resourceVersion."""
        apps_api.add(deployment_factory("database", resource_version="41"))
        trigger = RolloutTrigger(fake_client)

        result = trigger.trigger_restart(ControllerKind.DEPLOYMENT, "data", "database")

        stored = apps_api.get("Deployment", "data", "database")
        assert _marker_of(stored) == result.marker
        assert result.resource_version == "41"
        assert result.new_resource_version == "42"
        assert result.previous_marker is None
        assert result.dry_run is False
        assert apps_api.replace_calls() == [("replace", "Deployment", "data", "database")]

    def test_restart_stateful_set(
        self, fake_client: Any, apps_api: Any, stateful_set_factory: Callable[..., Any]
    ) -> None:
        """Should restart StatefulSets through the StatefulSet endpoints."""
        apps_api.add(stateful_set_factory("database-primary"))
        trigger = RolloutTrigger(fake_client)

        result = trigger.trigger_restart(ControllerKind.STATEFUL_SET, "data", "database-primary")

        assert result.kind == ControllerKind.STATEFUL_SET
        assert _marker_of(apps_api.get("StatefulSet", "data", "database-primary")) == result.marker

    def test_other_annotations_preserved(
        self, fake_client: Any, apps_api: Any, deployment_factory: Callable[..., Any]
    ) -> None:
        """Only the restart marker changes on the pod template."""
        apps_api.add(
            deployment_factory("database", annotations={"prometheus.io/scrape": "true"})
        )
        trigger = RolloutTrigger(fake_client)

        result = trigger.trigger_restart(ControllerKind.DEPLOYMENT, "data", "database")

        stored = apps_api.get("Deployment", "data", "database")
        assert stored["spec"]["template"]["metadata"]["annotations"] == {
            "prometheus.io/scrape": "true",
            RESTARTED_AT_ANNOTATION: result.marker,
        }
        assert stored["spec"]["template"]["metadata"]["labels"] == {"app": "database"}

    def test_fields_unknown_to_client_models_survive(
        self, fake_client: Any, apps_api: Any, deployment_factory: Callable[..., Any]
    ) -> None:
        """Fields newer than the installed client are written back untouched."""
        deployment = deployment_factory("database")
        deployment["spec"]["futureSpecField"] = {"enabled": True}
        deployment["spec"]["template"]["spec"]["futurePodField"] = "keep-me"
        deployment["status"] = {"observedGeneration": 3}
        apps_api.add(deployment)
        trigger = RolloutTrigger(fake_client)

        result = trigger.trigger_restart(ControllerKind.DEPLOYMENT, "data", "database")

        stored = apps_api.get("Deployment", "data", "database")
        assert stored["spec"]["futureSpecField"] == {"enabled": True}
        assert stored["spec"]["template"]["spec"]["futurePodField"] == "keep-me"
        assert stored["spec"]["template"]["spec"]["containers"][0]["image"] == "postgres:16"
        assert _marker_of(stored) == result.marker

    def test_null_annotations_are_replaced(
        self, fake_client: Any, apps_api: Any, stateful_set_factory: Callable[..., Any]
    ) -> None:
        """An explicit null annotation map is treated as empty."""
        stateful_set = stateful_set_factory("database")
        stateful_set["spec"]["template"]["metadata"]["annotations"] = None
        apps_api.add(stateful_set)
        trigger = RolloutTrigger(fake_client)

        result = trigger.trigger_restart(ControllerKind.STATEFUL_SET, "data", "database")

        assert _marker_of(apps_api.get("StatefulSet", "data", "database")) == result.marker

    def test_two_restarts_write_distinct_markers(
        self, fake_client: Any, apps_api: Any, deployment_factory: Callable[..., Any]
    ) -> None:
        """Each restart is a new rollout even within the same second."""
        apps_api.add(deployment_factory("database"))
        trigger = RolloutTrigger(fake_client)

        first = trigger.trigger_restart(ControllerKind.DEPLOYMENT, "data", "database")
        second = trigger.trigger_restart(ControllerKind.DEPLOYMENT, "data", "database")

        assert second.marker > first.marker
        assert second.previous_marker == first.marker
        assert len(apps_api.replace_calls()) == 2

    def test_missing_controller(self, fake_client: Any, apps_api: Any) -> None:
        """Should raise not found without writing."""
        trigger = RolloutTrigger(fake_client)

        with pytest.raises(KubernetesNotFoundError):
            trigger.trigger_restart(ControllerKind.DEPLOYMENT, "data", "missing")

        assert apps_api.replace_calls() == []

    def test_conflict_is_not_retried_by_default(
        self, fake_client: Any, apps_api: Any, deployment_factory: Callable[..., Any]
    ) -> None:
        """A concurrent modification surfaces as a conflict and is not overwritten."""
        apps_api.add(deployment_factory("database"))
        apps_api.concurrent_updates[("Deployment", "data", "database")] = 1
        trigger = RolloutTrigger(fake_client)

        with pytest.raises(KubernetesConflictError) as exc_info:
            trigger.trigger_restart(ControllerKind.DEPLOYMENT, "data", "database")

        assert exc_info.value.operation == "update"
        assert len(apps_api.replace_calls()) == 1
        assert _marker_of(apps_api.get("Deployment", "data", "database")) is None

    @patch("time.sleep")
    def test_conflict_retry_rereads_and_succeeds(
        self,
        mock_sleep: MagicMock,
        fake_client: Any,
        apps_api: Any,
        deployment_factory: Callable[..., Any],
    ) -> None:
        """With retries enabled the object is re-read and written again."""
        apps_api.add(deployment_factory("database"))
        apps_api.concurrent_updates[("Deployment", "data", "database")] = 1
        trigger = RolloutTrigger(fake_client, conflict_retries=1)

        result = trigger.trigger_restart(ControllerKind.DEPLOYMENT, "data", "database")

        assert result.resource_version == "2"
        assert len(apps_api.replace_calls()) == 2
        assert _marker_of(apps_api.get("Deployment", "data", "database")) == result.marker

    def test_unavailable_write_propagates(
        self, fake_client: Any, apps_api: Any, deployment_factory: Callable[..., Any]
    ) -> None:
        """Server errors on write are raised as unavailable."""
        from kubernetes.client import ApiException

        apps_api.add(deployment_factory("database"))
        apps_api.replace_failures[("Deployment", "data", "database")] = [
            ApiException(status=503, reason="Service Unavailable")
        ]
        trigger = RolloutTrigger(fake_client, conflict_retries=3)

        with pytest.raises(KubernetesUnavailableError):
            trigger.trigger_restart(ControllerKind.DEPLOYMENT, "data", "database")

        assert len(apps_api.replace_calls()) == 1

    def test_forbidden_write_names_controller(
        self, fake_client: Any, apps_api: Any, stateful_set_factory: Callable[..., Any]
    ) -> None:
        """An RBAC denial on update identifies the controller it was for."""
        from kubernetes.client import ApiException

        apps_api.add(stateful_set_factory("database"))
        apps_api.replace_failures[("StatefulSet", "data", "database")] = [
            ApiException(status=403, reason="Forbidden")
        ]
        trigger = RolloutTrigger(fake_client)

        with pytest.raises(KubernetesAuthError) as exc_info:
            trigger.trigger_restart(ControllerKind.STATEFUL_SET, "data", "database")

        assert exc_info.value.resource_type == "StatefulSet"
        assert exc_info.value.resource_name == "database"
        assert exc_info.value.namespace == "data"
        assert exc_info.value.operation == "update"

    def test_dry_run_does_not_write(
        self, fake_client: Any, apps_api: Any, deployment_factory: Callable[..., Any]
    ) -> None:
        """Dry run computes the marker but never replaces."""
        apps_api.add(deployment_factory("database"))
        trigger = RolloutTrigger(fake_client, dry_run=True)

        result = trigger.trigger_restart(ControllerKind.DEPLOYMENT, "data", "database")

        assert trigger.dry_run is True
        assert result.dry_run is True
        assert result.marker
        assert apps_api.replace_calls() == []
        assert _marker_of(apps_api.get("Deployment", "data", "database")) is None
