"""Shared pytest fixtures for workload_restarter tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    for key in list(os.environ.keys()):
        if key.startswith("RESTARTER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def isolate_log_files(tmp_path: Path) -> Generator[None]:
    """Keep file logging inside the test's temp dir and drop added handlers."""
    from unittest.mock import patch

    root = logging.getLogger()
    original_handlers = list(root.handlers)
    log_dir = tmp_path / "state"
    with (
        patch("workload_restarter.logging.config.LOG_DIR", log_dir),
        patch("workload_restarter.logging.config.LOG_FILE", log_dir / "restarter.log"),
    ):
        yield
    root.handlers = original_handlers
