"""Base models and helpers for kubernetes SDK objects."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class OwnerReference(BaseModel):
    """Kubernetes owner reference.

    Only references with ``controller`` set are authoritative for ownership;
    the API leaves the flag unset (None) on plain owner references.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    api_version: str | None = None
    kind: str | None = None
    name: str | None = None
    uid: str | None = None
    controller: bool = False

    @classmethod
    def from_k8s_object(cls, obj: Any) -> OwnerReference:
        """Create from a kubernetes V1OwnerReference object."""
        if obj is None:
            return cls()
        return cls(
            api_version=getattr(obj, "api_version", None),
            kind=getattr(obj, "kind", None),
            name=getattr(obj, "name", None),
            uid=getattr(obj, "uid", None),
            controller=getattr(obj, "controller", None) is True,
        )


def _safe_get(obj: Any, *attrs: str, default: Any = None) -> Any:
    """Safely traverse nested attributes on kubernetes SDK objects."""
    current = obj
    for attr in attrs:
        if current is None:
            return default
        current = getattr(current, attr, None)
    return current if current is not None else default


def _safe_get_item(obj: Any, *keys: str, default: Any = None) -> Any:
    """Safely traverse nested keys on raw API JSON (camelCase dicts)."""
    current = obj
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
    return current if current is not None else default
