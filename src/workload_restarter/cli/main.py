"""Main CLI entry point using Typer."""

from __future__ import annotations

import typer
from rich.console import Console

from workload_restarter import __version__
from workload_restarter.cli.commands import run
from workload_restarter.logging.config import configure_logging

app = typer.Typer(
    name="restarter",
    help="Graceful rollout restarts for the controllers of matching pods.",
    add_completion=True,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"restarter version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Write console logs as JSON lines.",
    ),
) -> None:
    """Restart workload controllers without deleting pods."""
    configure_logging(verbose=verbose, debug=debug, json_output=json_logs)


app.command()(run.run)


if __name__ == "__main__":
    app()
