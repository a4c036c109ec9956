"""The ``run`` command: one restart pass over the cluster."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import typer
from pydantic import ValidationError

from workload_restarter.cli.commands.base import (
    ConflictRetriesOption,
    ContextOption,
    DryRunOption,
    KubeconfigOption,
    MatchOption,
    OutputOption,
    console,
    err_console,
    handle_k8s_error,
)
from workload_restarter.cli.formatters import OutputFormat, get_formatter
from workload_restarter.integrations.kubernetes.client import KubernetesClient
from workload_restarter.integrations.kubernetes.config import RestarterConfig
from workload_restarter.integrations.kubernetes.exceptions import KubernetesError
from workload_restarter.services.kubernetes.restart_orchestrator import (
    RestartOrchestrator,
    RunSummary,
)
from workload_restarter.services.kubernetes.rollout_trigger import RolloutTrigger
from workload_restarter.services.kubernetes.workload_directory import WorkloadDirectory

logger = structlog.get_logger()


def build_config(overrides: dict[str, Any]) -> RestarterConfig:
    """Merge CLI flags over environment configuration.

    Args:
        overrides: Flag values; None entries are ignored.

    Returns:
        The validated configuration.
    """
    config = RestarterConfig.from_env()
    flags = {key: value for key, value in overrides.items() if value is not None}
    if not flags:
        return config
    return RestarterConfig.model_validate({**config.model_dump(), **flags})


def execute_pass(config: RestarterConfig) -> RunSummary:
    """Connect to the cluster and run one restart pass.

    Raises:
        KubernetesError: If the client cannot be set up or pods cannot be listed.
    """
    with KubernetesClient(config) as client:
        client.check_connection()
        directory = WorkloadDirectory(client, page_size=config.page_size)
        trigger = RolloutTrigger(
            client,
            conflict_retries=config.conflict_retries,
            dry_run=config.dry_run,
        )
        orchestrator = RestartOrchestrator(directory, trigger, needle=config.match)
        return orchestrator.run()


def run(
    kubeconfig: KubeconfigOption = None,
    context: ContextOption = None,
    match: MatchOption = None,
    dry_run: DryRunOption = False,
    conflict_retries: ConflictRetriesOption = None,
    output: OutputOption = None,
) -> None:
    """Rollout-restart the controllers of every pod whose name matches.

    Pods are never deleted: each matching pod's Deployment or StatefulSet
    gets a new restartedAt annotation on its pod template, exactly like
    ``kubectl rollout restart``. Pods owned by other kinds, or by nothing,
    are reported as skipped.

    Examples:
        restarter run
        restarter run --kubeconfig ~/.kube/staging --dry-run
        restarter run --match postgres --output json
    """
    try:
        config = build_config(
            {
                "kubeconfig": kubeconfig,
                "context": context,
                "match": match,
                "dry_run": True if dry_run else None,
                "conflict_retries": conflict_retries,
                "output_format": output.value if output else None,
            }
        )
    except ValidationError as e:
        err_console.print("[red]Error:[/red] Invalid configuration")
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"])
            err_console.print(f"  {loc}: {err['msg']}")
        raise typer.Exit(1) from e

    if config.kubeconfig and not Path(config.kubeconfig).exists():
        err_console.print(f"[red]Error:[/red] Kubeconfig file not found: {config.kubeconfig}")
        raise typer.Exit(1)

    logger.info("Starting restart pass", match=config.match, dry_run=config.dry_run)
    try:
        summary = execute_pass(config)
    except KubernetesError as e:
        handle_k8s_error(e)
        return

    formatter = get_formatter(OutputFormat(config.output_format), console)
    formatter.format_summary(summary)

    if not summary.complete:
        raise typer.Exit(1)
