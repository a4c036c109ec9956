"""Shared fixtures for Kubernetes service tests.

The apps fake keeps raw API JSON and enforces resourceVersion
on replace the way the API server does, so read-modify-write behavior is
exercised without a cluster.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Callable
from typing import Any

import pytest

from workload_restarter.integrations.kubernetes.client import KubernetesClient


def make_pod(name: str, namespace: str = "data", owners: list[tuple[str, str]] | None = None) -> Any:
    """Build a V1Pod; ``owners`` are (kind, name) controller references."""
    from kubernetes.client import V1ObjectMeta, V1OwnerReference, V1Pod

    refs = [
        V1OwnerReference(
            api_version="apps/v1" if kind in ("Deployment", "StatefulSet", "ReplicaSet") else "v1",
            kind=kind,
            name=owner,
            uid=f"uid-{owner}",
            controller=True,
        )
        for kind, owner in owners or []
    ]
    return V1Pod(
        metadata=V1ObjectMeta(
            name=name,
            namespace=namespace,
            uid=f"uid-{name}",
            owner_references=refs or None,
        )
    )


def _template(name: str, annotations: dict[str, str] | None) -> Any:
    from kubernetes.client import V1Container, V1ObjectMeta, V1PodSpec, V1PodTemplateSpec

    return V1PodTemplateSpec(
        metadata=V1ObjectMeta(labels={"app": name}, annotations=annotations),
        spec=V1PodSpec(containers=[V1Container(name="main", image="postgres:16")]),
    )


def _to_json(obj: Any) -> dict[str, Any]:
    """Serialize a typed model the way the API server would return it."""
    from kubernetes.client import ApiClient

    serialized: dict[str, Any] = ApiClient().sanitize_for_serialization(obj)
    return serialized


def make_deployment(
    name: str,
    namespace: str = "data",
    annotations: dict[str, str] | None = None,
    resource_version: str = "1",
) -> dict[str, Any]:
    """Build a Deployment as raw API JSON with a minimal pod template."""
    from kubernetes.client import V1Deployment, V1DeploymentSpec, V1LabelSelector, V1ObjectMeta

    return _to_json(
        V1Deployment(
            api_version="apps/v1",
            kind="Deployment",
            metadata=V1ObjectMeta(
                name=name, namespace=namespace, resource_version=resource_version
            ),
            spec=V1DeploymentSpec(
                selector=V1LabelSelector(match_labels={"app": name}),
                template=_template(name, annotations),
            ),
        )
    )


def make_stateful_set(
    name: str,
    namespace: str = "data",
    annotations: dict[str, str] | None = None,
    resource_version: str = "1",
) -> dict[str, Any]:
    """Build a StatefulSet as raw API JSON with a minimal pod template."""
    from kubernetes.client import V1LabelSelector, V1ObjectMeta, V1StatefulSet, V1StatefulSetSpec

    return _to_json(
        V1StatefulSet(
            api_version="apps/v1",
            kind="StatefulSet",
            metadata=V1ObjectMeta(
                name=name, namespace=namespace, resource_version=resource_version
            ),
            spec=V1StatefulSetSpec(
                selector=V1LabelSelector(match_labels={"app": name}),
                service_name=name,
                template=_template(name, annotations),
            ),
        )
    )


class FakeResponse:
    """Undecoded HTTP response, as returned with ``_preload_content=False``."""

    def __init__(self, body: dict[str, Any]) -> None:
        self.status = 200
        self.data = json.dumps(body).encode("utf-8")


class FakeAppsV1Api:
    """In-memory apps/v1 store of raw JSON objects with optimistic concurrency.

    Like the API server, it keeps every field it is given, so fields unknown
    to the client's typed models are visible to tests.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str, str]] = []
        self.replace_failures: dict[tuple[str, str, str], list[Exception]] = {}
        self.concurrent_updates: dict[tuple[str, str, str], int] = {}

    def add(self, obj: dict[str, Any]) -> None:
        key = (obj["kind"], obj["metadata"]["namespace"], obj["metadata"]["name"])
        self.objects[key] = copy.deepcopy(obj)

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        return self.objects[(kind, namespace, name)]

    def replace_calls(self) -> list[tuple[str, str, str, str]]:
        return [call for call in self.calls if call[0] == "replace"]

    def _read(self, kind: str, name: str, namespace: str, kwargs: dict[str, Any]) -> Any:
        from kubernetes.client import ApiException

        assert kwargs.get("_preload_content") is False
        key = (kind, namespace, name)
        self.calls.append(("read", kind, namespace, name))
        if key not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        response = FakeResponse(self.objects[key])
        if self.concurrent_updates.get(key):
            # Another writer changes the object right after our read.
            self.concurrent_updates[key] -= 1
            self._bump(self.objects[key])
        return response

    def _replace(
        self, kind: str, name: str, namespace: str, body: Any, kwargs: dict[str, Any]
    ) -> Any:
        from kubernetes.client import ApiException

        assert kwargs.get("_preload_content") is False
        assert isinstance(body, dict)
        key = (kind, namespace, name)
        self.calls.append(("replace", kind, namespace, name))
        if failures := self.replace_failures.get(key):
            raise failures.pop(0)
        if key not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        stored = self.objects[key]
        if body["metadata"].get("resourceVersion") != stored["metadata"].get("resourceVersion"):
            raise ApiException(status=409, reason="Conflict")
        updated = json.loads(json.dumps(body))
        self._bump(updated)
        self.objects[key] = updated
        return FakeResponse(updated)

    @staticmethod
    def _bump(obj: dict[str, Any]) -> None:
        metadata = obj["metadata"]
        metadata["resourceVersion"] = str(int(metadata.get("resourceVersion") or "0") + 1)

    def read_namespaced_deployment(self, name: str, namespace: str, **kwargs: Any) -> Any:
        return self._read("Deployment", name, namespace, kwargs)

    def replace_namespaced_deployment(
        self, name: str, namespace: str, body: Any, **kwargs: Any
    ) -> Any:
        return self._replace("Deployment", name, namespace, body, kwargs)

    def read_namespaced_stateful_set(self, name: str, namespace: str, **kwargs: Any) -> Any:
        return self._read("StatefulSet", name, namespace, kwargs)

    def replace_namespaced_stateful_set(
        self, name: str, namespace: str, body: Any, **kwargs: Any
    ) -> Any:
        return self._replace("StatefulSet", name, namespace, body, kwargs)


class FakeCoreV1Api:
    """Paginated pod listing over a fixed list of V1Pod objects."""

    def __init__(self, pods: list[Any] | None = None) -> None:
        self.pods = list(pods or [])
        self.list_calls: list[dict[str, Any]] = []
        self.fail_on_call: int | None = None
        self.failure: Exception | None = None

    def list_pod_for_all_namespaces(self, **kwargs: Any) -> Any:
        from kubernetes.client import V1ListMeta, V1PodList

        self.list_calls.append(kwargs)
        if self.fail_on_call == len(self.list_calls) and self.failure is not None:
            raise self.failure

        limit = kwargs.get("limit") or len(self.pods) or 1
        start = int(kwargs.get("_continue") or 0)
        end = start + limit
        token = str(end) if end < len(self.pods) else None
        return V1PodList(items=self.pods[start:end], metadata=V1ListMeta(_continue=token))


class FakeKubernetesClient:
    """Stand-in for KubernetesClient exposing the fake API groups."""

    request_timeout = 30
    translate_api_exception = staticmethod(KubernetesClient.translate_api_exception)

    def __init__(self, core_v1: FakeCoreV1Api, apps_v1: FakeAppsV1Api) -> None:
        self.core_v1 = core_v1
        self.apps_v1 = apps_v1


@pytest.fixture
def apps_api() -> FakeAppsV1Api:
    """Empty apps/v1 store."""
    return FakeAppsV1Api()


@pytest.fixture
def core_api() -> FakeCoreV1Api:
    """Empty pod listing."""
    return FakeCoreV1Api()


@pytest.fixture
def fake_client(core_api: FakeCoreV1Api, apps_api: FakeAppsV1Api) -> FakeKubernetesClient:
    """Client wired to the fake API groups."""
    return FakeKubernetesClient(core_api, apps_api)


@pytest.fixture
def pod_factory() -> Callable[..., Any]:
    """Factory for V1Pod objects."""
    return make_pod


@pytest.fixture
def deployment_factory() -> Callable[..., Any]:
    """Factory for V1Deployment objects."""
    return make_deployment


@pytest.fixture
def stateful_set_factory() -> Callable[..., Any]:
    """Factory for V1StatefulSet objects."""
    return make_stateful_set
