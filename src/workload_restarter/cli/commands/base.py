"""Shared options and error handling for CLI commands."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from workload_restarter.cli.formatters import OutputFormat
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

console = Console()
err_console = Console(stderr=True)


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

OutputOption = Annotated[
    OutputFormat | None,
    typer.Option(
        "--output",
        "-o",
        help="Output format: table, json, or yaml",
        case_sensitive=False,
    ),
]

KubeconfigOption = Annotated[
    str | None,
    typer.Option(
        "--kubeconfig",
        help="Path to the kubeconfig file (defaults to $KUBECONFIG or ~/.kube/config)",
    ),
]

ContextOption = Annotated[
    str | None,
    typer.Option(
        "--context",
        help="Kubeconfig context to use",
    ),
]

MatchOption = Annotated[
    str | None,
    typer.Option(
        "--match",
        "-m",
        help="Substring a pod name must contain (case-sensitive, default 'database')",
    ),
]

DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        help="Resolve owners and report what would restart, without writing",
    ),
]

ConflictRetriesOption = Annotated[
    int | None,
    typer.Option(
        "--conflict-retries",
        min=0,
        help="Re-read and retry a controller update this many times after a conflict",
    ),
]


# =============================================================================
# Error Handling
# =============================================================================


def handle_k8s_error(error: KubernetesError) -> None:
    """Report a fatal Kubernetes error and exit.

    Args:
        error: The Kubernetes error to handle.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    message = escape(str(error))

    if isinstance(error, KubernetesConnectionError):
        err_console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        err_console.print(f"  {message}")
        if error.original_error:
            err_console.print(f"  Cause: {escape(str(error.original_error))}")
        err_console.print(
            "\n[dim]Hint: Check that your kubeconfig is valid and the cluster is reachable.[/dim]"
        )

    elif isinstance(error, KubernetesAuthError):
        err_console.print("[red]Error:[/red] Authentication/authorization failed")
        err_console.print(f"  {message}")
        err_console.print(
            "\n[dim]Hint: Listing pods cluster-wide and updating deployments/statefulsets "
            "needs matching RBAC permissions.[/dim]"
        )

    elif isinstance(error, KubernetesTimeoutError):
        err_console.print("[red]Error:[/red] Request timed out")
        err_console.print(f"  {message}")
        err_console.print(
            "\n[dim]Hint: Try increasing the timeout with RESTARTER_TIMEOUT.[/dim]"
        )

    elif isinstance(error, KubernetesUnavailableError):
        err_console.print("[red]Error:[/red] Kubernetes API unavailable")
        err_console.print(f"  {message}")

    elif isinstance(error, KubernetesNotFoundError):
        err_console.print("[red]Error:[/red] Resource not found")
        err_console.print(f"  {message}")

    elif isinstance(error, KubernetesValidationError):
        err_console.print("[red]Error:[/red] Validation failed")
        err_console.print(f"  {message}")

    elif isinstance(error, KubernetesConflictError):
        err_console.print("[red]Error:[/red] Resource conflict")
        err_console.print(f"  {message}")

    else:
        err_console.print(f"[red]Error:[/red] {message}")

    raise typer.Exit(1)
