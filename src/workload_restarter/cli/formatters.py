"""Output formatters for the restart run summary.

Implements the Strategy pattern for output formatting so a run can be
reported as a Rich table, JSON, or YAML.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from enum import StrEnum

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from workload_restarter.services.kubernetes.restart_orchestrator import PodOutcome, RunSummary


class OutputFormat(StrEnum):
    """Supported output formats."""

    TABLE = "table"
    JSON = "json"
    YAML = "yaml"


class SummaryFormatter(ABC):
    """Abstract base class for run summary formatters."""

    def __init__(self, console: Console) -> None:
        self.console = console

    @abstractmethod
    def format_summary(self, summary: RunSummary) -> None:
        """Format and display a run summary."""

    def _print_plain(self, text: str) -> None:
        # Machine-readable output must not be wrapped or parsed as markup.
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)


class TableFormatter(SummaryFormatter):
    """Rich table output formatter."""

    BUCKET_STYLES = {
        "restarted": "green",
        "skipped": "yellow",
        "errored": "red",
    }

    def format_summary(self, summary: RunSummary) -> None:
        title = "Rollout Restarts (dry run)" if summary.dry_run else "Rollout Restarts"
        table = Table(title=title, show_header=True)
        table.add_column("Result", no_wrap=True)
        table.add_column("Namespace", style="cyan")
        table.add_column("Pod", style="cyan")
        table.add_column("Controller")
        table.add_column("Detail", overflow="fold")

        for bucket, outcomes in (
            ("restarted", summary.restarted),
            ("skipped", summary.skipped),
            ("errored", summary.errored),
        ):
            style = self.BUCKET_STYLES[bucket]
            for outcome in outcomes:
                table.add_row(
                    f"[{style}]{bucket}[/{style}]",
                    escape(outcome.namespace),
                    escape(outcome.pod),
                    escape(self._controller(outcome)),
                    escape(self._detail(outcome)),
                )

        if summary.matched:
            self.console.print(table)
        else:
            self.console.print("[dim]No matching pods found.[/dim]")

        self.console.print(
            f"\n[dim]Scanned {summary.scanned} pods, matched {summary.matched}: "
            f"{len(summary.restarted)} restarted, {len(summary.skipped)} skipped, "
            f"{len(summary.errored)} errored[/dim]"
        )
        if summary.listing_error:
            self.console.print(
                f"[red]Pod listing stopped early:[/red] {escape(summary.listing_error)}"
            )

    @staticmethod
    def _controller(outcome: PodOutcome) -> str:
        if outcome.controller_kind and outcome.controller_name:
            return f"{outcome.controller_kind}/{outcome.controller_name}"
        return outcome.controller_kind or "-"

    @staticmethod
    def _detail(outcome: PodOutcome) -> str:
        if outcome.marker:
            return f"{outcome.reason} ({outcome.marker})"
        return outcome.reason


class JsonFormatter(SummaryFormatter):
    """JSON output formatter."""

    def format_summary(self, summary: RunSummary) -> None:
        self._print_plain(json.dumps(summary.to_dict(), indent=2, default=str))


class YamlFormatter(SummaryFormatter):
    """YAML output formatter."""

    def format_summary(self, summary: RunSummary) -> None:
        self._print_plain(yaml.dump(summary.to_dict(), default_flow_style=False, sort_keys=False))


def get_formatter(format_type: OutputFormat, console: Console | None = None) -> SummaryFormatter:
    """Factory function to get the appropriate formatter."""
    if console is None:
        console = Console()

    formatters: dict[OutputFormat, type[SummaryFormatter]] = {
        OutputFormat.TABLE: TableFormatter,
        OutputFormat.JSON: JsonFormatter,
        OutputFormat.YAML: YamlFormatter,
    }

    formatter_class = formatters.get(format_type, TableFormatter)
    return formatter_class(console)
