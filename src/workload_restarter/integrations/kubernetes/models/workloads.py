"""Workload models: pod records and supported controller kinds."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from workload_restarter.integrations.kubernetes.models.base import OwnerReference, _safe_get

# Annotation recognized by the Deployment and StatefulSet controllers (and
# written by ``kubectl rollout restart``) as a pod template change.
RESTARTED_AT_ANNOTATION = "kubectl.kubernetes.io/restartedAt"


class ControllerKind(StrEnum):
    """Controller kinds that support a rollout restart."""

    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"


class PodRecord(BaseModel):
    """Read-only snapshot of a pod's identity and ownership."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(description="Pod name")
    namespace: str = Field(default="default", description="Pod namespace")
    uid: str | None = Field(default=None, description="Kubernetes UID")
    owner_references: tuple[OwnerReference, ...] = Field(
        default=(), description="Owner references recorded on the pod"
    )

    @property
    def controller_references(self) -> list[OwnerReference]:
        """Owner references flagged as the managing controller."""
        return [ref for ref in self.owner_references if ref.controller]

    @classmethod
    def from_k8s_object(cls, obj: Any) -> PodRecord:
        """Create from a kubernetes V1Pod object."""
        owner_refs = _safe_get(obj, "metadata", "owner_references") or []
        return cls(
            name=_safe_get(obj, "metadata", "name", default=""),
            namespace=_safe_get(obj, "metadata", "namespace", default="default"),
            uid=_safe_get(obj, "metadata", "uid"),
            owner_references=tuple(OwnerReference.from_k8s_object(ref) for ref in owner_refs),
        )
