"""Restart run configuration model."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_MATCH = "database"

_TRUTHY = {"1", "true", "yes", "on"}


class RestarterConfig(BaseModel):
    """Complete configuration for a restart run."""

    model_config = ConfigDict(extra="forbid")

    kubeconfig: str | None = None
    context: str | None = None
    match: str = DEFAULT_MATCH
    page_size: int = 500
    timeout: int = 30
    retry_attempts: int = 3
    conflict_retries: int = 0
    dry_run: bool = False
    output_format: Literal["table", "json", "yaml"] = "table"

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str | None) -> str | None:
        """Expand ~ in kubeconfig path."""
        if not v:
            return None
        return str(Path(v).expanduser())

    @field_validator("match")
    @classmethod
    def validate_match(cls, v: str) -> str:
        """Reject an empty needle, which would match every pod."""
        if not v:
            raise ValueError("match must not be empty")
        return v

    @field_validator("page_size", "timeout")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate page size and timeout are positive."""
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator("retry_attempts", "conflict_retries")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Validate retry counts are non-negative."""
        if v < 0:
            raise ValueError("retry counts must be non-negative")
        return v

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> RestarterConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values. Numeric
        values are left as strings for pydantic to coerce, so malformed input
        surfaces as a ValidationError.

        Supported environment variables:
            RESTARTER_KUBECONFIG: Path to the kubeconfig file
            RESTARTER_CONTEXT: Kubeconfig context to use
            RESTARTER_MATCH: Substring a pod name must contain
            RESTARTER_PAGE_SIZE: Pods fetched per list request
            RESTARTER_TIMEOUT: Per-request timeout in seconds
            RESTARTER_CONFLICT_RETRIES: Re-fetch attempts after a write conflict
            RESTARTER_DRY_RUN: Resolve owners without writing (1/true/yes)
            RESTARTER_OUTPUT: Output format (table, json, yaml)
        """
        config_dict = base_config.copy() if base_config else {}

        if kubeconfig := os.environ.get("RESTARTER_KUBECONFIG"):
            config_dict["kubeconfig"] = kubeconfig

        if context := os.environ.get("RESTARTER_CONTEXT"):
            config_dict["context"] = context

        if match := os.environ.get("RESTARTER_MATCH"):
            config_dict["match"] = match

        if page_size := os.environ.get("RESTARTER_PAGE_SIZE"):
            config_dict["page_size"] = page_size

        if timeout := os.environ.get("RESTARTER_TIMEOUT"):
            config_dict["timeout"] = timeout

        if conflict_retries := os.environ.get("RESTARTER_CONFLICT_RETRIES"):
            config_dict["conflict_retries"] = conflict_retries

        if dry_run := os.environ.get("RESTARTER_DRY_RUN"):
            config_dict["dry_run"] = dry_run.strip().lower() in _TRUTHY

        if output_format := os.environ.get("RESTARTER_OUTPUT"):
            config_dict["output_format"] = output_format

        return cls.model_validate(config_dict)
