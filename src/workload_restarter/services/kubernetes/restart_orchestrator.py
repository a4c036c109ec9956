"""Single-pass restart orchestration.

Walks the cluster's pods once, restarts the controllers of pods whose name
matches, and reports what happened to every matched pod. A failure on one
pod never stops the pass.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from workload_restarter.integrations.kubernetes.config import DEFAULT_MATCH
from workload_restarter.integrations.kubernetes.exceptions import KubernetesError
from workload_restarter.services.kubernetes.matching import matches
from workload_restarter.services.kubernetes.owner_resolver import (
    NoControllerOwner,
    UnsupportedOwner,
    resolve_owner,
)

if TYPE_CHECKING:
    from workload_restarter.integrations.kubernetes.models.workloads import PodRecord
    from workload_restarter.services.kubernetes.rollout_trigger import (
        RestartResult,
        RolloutTrigger,
    )
    from workload_restarter.services.kubernetes.workload_directory import WorkloadDirectory

logger = structlog.get_logger()

REASON_RESTARTED = "rollout restart triggered"
REASON_DRY_RUN = "dry run: rollout restart not written"
REASON_ALREADY_RESTARTED = "controller already restarted in this run"
REASON_NO_CONTROLLER = "no controlling owner"


@dataclass
class PodOutcome:
    """What happened to one matched pod."""

    namespace: str
    pod: str
    reason: str
    controller_kind: str | None = None
    controller_name: str | None = None
    marker: str | None = None
    error_type: str | None = None


@dataclass
class RunSummary:
    """Aggregated per-pod outcomes of one pass.

    Every matched pod appears in exactly one of ``restarted``, ``skipped``
    or ``errored``; pods that did not match appear nowhere.
    """

    restarted: list[PodOutcome] = field(default_factory=list)
    skipped: list[PodOutcome] = field(default_factory=list)
    errored: list[PodOutcome] = field(default_factory=list)
    scanned: int = 0
    listing_error: str | None = None
    dry_run: bool = False

    @property
    def matched(self) -> int:
        """Number of pods whose name matched."""
        return len(self.restarted) + len(self.skipped) + len(self.errored)

    @property
    def complete(self) -> bool:
        """True if the whole pod listing was processed."""
        return self.listing_error is None

    @property
    def has_errors(self) -> bool:
        """True if any pod errored or the listing broke off."""
        return bool(self.errored) or not self.complete

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view for JSON/YAML output."""
        return {
            "scanned": self.scanned,
            "matched": self.matched,
            "complete": self.complete,
            "dry_run": self.dry_run,
            "listing_error": self.listing_error,
            "restarted": [asdict(o) for o in self.restarted],
            "skipped": [asdict(o) for o in self.skipped],
            "errored": [asdict(o) for o in self.errored],
        }


class RestartOrchestrator:
    """Drives match, owner resolution and rollout trigger over all pods."""

    def __init__(
        self,
        directory: WorkloadDirectory,
        trigger: RolloutTrigger,
        *,
        needle: str = DEFAULT_MATCH,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            directory: Source of pod records.
            trigger: Performs rollout restarts.
            needle: Substring a pod name must contain to be processed.
        """
        self._directory = directory
        self._trigger = trigger
        self._needle = needle
        self._log = logger.bind(entity="run")

    def run(self) -> RunSummary:
        """Process every pod once, sequentially, in listing order.

        Returns:
            The run summary.

        Raises:
            KubernetesError: If the pod listing fails before any pod is seen.
        """
        summary = RunSummary(dry_run=self._trigger.dry_run)
        restarted: dict[tuple[str, str, str], RestartResult] = {}
        pods: Iterator[PodRecord] = iter(self._directory.list_all_pods())

        self._log.info("restart_pass_started", match=self._needle, dry_run=summary.dry_run)
        while True:
            try:
                pod = next(pods)
            except StopIteration:
                break
            except KubernetesError as e:
                if summary.scanned == 0:
                    raise
                self._log.error("pod_listing_interrupted", error=str(e), scanned=summary.scanned)
                summary.listing_error = str(e)
                break

            summary.scanned += 1
            if not matches(pod, self._needle):
                continue
            self._process(pod, summary, restarted)

        self._log.info(
            "restart_pass_finished",
            scanned=summary.scanned,
            matched=summary.matched,
            restarted=len(summary.restarted),
            skipped=len(summary.skipped),
            errored=len(summary.errored),
            complete=summary.complete,
        )
        return summary

    def _process(
        self,
        pod: PodRecord,
        summary: RunSummary,
        restarted: dict[tuple[str, str, str], RestartResult],
    ) -> None:
        log = self._log.bind(pod=pod.name, namespace=pod.namespace)
        owner = resolve_owner(pod)

        if isinstance(owner, UnsupportedOwner):
            reason = f"unsupported controller kind {owner.kind}"
            log.info("skipped_pod", reason=reason)
            summary.skipped.append(
                PodOutcome(pod.namespace, pod.name, reason, controller_kind=owner.kind)
            )
            return

        if isinstance(owner, NoControllerOwner):
            log.info("skipped_pod", reason=REASON_NO_CONTROLLER)
            summary.skipped.append(PodOutcome(pod.namespace, pod.name, REASON_NO_CONTROLLER))
            return

        key = (str(owner.kind), owner.namespace, owner.name)
        if previous := restarted.get(key):
            log.info("controller_already_restarted", kind=key[0], controller=owner.name)
            summary.restarted.append(
                PodOutcome(
                    pod.namespace,
                    pod.name,
                    REASON_ALREADY_RESTARTED,
                    controller_kind=key[0],
                    controller_name=owner.name,
                    marker=previous.marker,
                )
            )
            return

        try:
            result = self._trigger.trigger_restart(owner.kind, owner.namespace, owner.name)
        except KubernetesError as e:
            log.error("restart_failed", kind=key[0], controller=owner.name, error=str(e))
            summary.errored.append(
                PodOutcome(
                    pod.namespace,
                    pod.name,
                    str(e),
                    controller_kind=key[0],
                    controller_name=owner.name,
                    error_type=type(e).__name__,
                )
            )
            return

        restarted[key] = result
        summary.restarted.append(
            PodOutcome(
                pod.namespace,
                pod.name,
                REASON_DRY_RUN if result.dry_run else REASON_RESTARTED,
                controller_kind=key[0],
                controller_name=owner.name,
                marker=result.marker,
            )
        )
