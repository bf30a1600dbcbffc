"""Audit orchestrator wiring together dedup, rewrite confirmation, probing and report."""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

import structlog

from ..config import AuditConfig
from ..errors import StoreAccessError
from .prober import HttpProber, ProbeResult, Prober, probe_sources
from .store import ListSource, ListStore, deduplicated_lines, find_duplicates, parse_sources

REACHABLE_MESSAGE = "All adlists reachable."
RECOMMENDATION = (
    "Consider removing the unreachable adlists above, then update gravity."
)
NETWORK_WARNING = (
    "Every probe failed without a response; the network may be unavailable."
)


class AuditStage(str, Enum):
    START = "start"
    DEDUP = "dedup"
    REWRITE_CONFIRM = "rewrite_confirm"
    PROBE = "probe"
    REPORT = "report"
    END = "end"
    ERROR = "error"


class ProgressSink(Protocol):
    def start(self, total: int) -> None: ...

    def advance(self, reachable: bool, current_url: str | None = None) -> None: ...

    def close(self) -> None: ...


@dataclass
class DedupOutcome:
    duplicates: list[str] = field(default_factory=list)
    rewritten: bool = False
    declined: bool = False
    backup_path: Path | None = None
    lines_before: int = 0
    lines_after: int = 0

    @property
    def found(self) -> bool:
        return bool(self.duplicates)


@dataclass
class AuditReport:
    """Consolidated result of one audit pass."""

    store_path: Path
    stages: list[AuditStage] = field(default_factory=list)
    dedup: DedupOutcome | None = None
    results: list[ProbeResult] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def unreachable(self) -> list[ProbeResult]:
        return [result for result in self.results if not result.reachable]

    @property
    def unreachable_count(self) -> int:
        return len(self.unreachable)

    @property
    def probed_count(self) -> int:
        return len(self.results)

    @property
    def all_reachable(self) -> bool:
        return self.succeeded and self.unreachable_count == 0

    @property
    def network_suspect(self) -> bool:
        return bool(self.results) and all(
            not result.reachable and result.status_code is None for result in self.results
        )


def _no_output(_message: str) -> None:
    return None


class AuditOrchestrator:
    """Run dedup → (confirm rewrite) → probe → report over one store."""

    def __init__(
        self,
        store: ListStore,
        prober: Prober,
        confirm: Callable[[str], bool],
        notify: Callable[[str], None] | None = None,
        workers: int = 1,
        progress: ProgressSink | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.store = store
        self.prober = prober
        self.confirm = confirm
        self.notify = notify or _no_output
        self.workers = workers
        self.progress = progress
        self.logger = logger or structlog.get_logger("pihole_toolkit.audit").bind(component="audit")

    def run(self) -> AuditReport:
        report = AuditReport(store_path=self.store.path, stages=[AuditStage.START])
        self.logger.info("audit_started", store=str(self.store.path))

        report.stages.append(AuditStage.DEDUP)
        try:
            sources = self.store.read()
            report.dedup, sources = self._dedup(sources, report)
        except StoreAccessError as exc:
            report.error = str(exc)
            report.stages.append(AuditStage.ERROR)
            self.logger.error("audit_store_error", store=str(self.store.path), error=str(exc))
            self.notify(f"Audit aborted: {exc}")
            return report

        report.stages.append(AuditStage.PROBE)
        try:
            report.results = self._probe(sources)
        except KeyboardInterrupt:
            self.logger.warning("audit_interrupted", store=str(self.store.path))
            raise

        report.stages.append(AuditStage.REPORT)
        self._report(report)
        report.stages.append(AuditStage.END)
        self.logger.info(
            "audit_finished",
            store=str(self.store.path),
            probed=report.probed_count,
            unreachable=report.unreachable_count,
            rewritten=bool(report.dedup and report.dedup.rewritten),
        )
        return report

    # ------------------------------------------------------------------
    def _dedup(
        self, sources: list[ListSource], report: AuditReport
    ) -> tuple[DedupOutcome, list[ListSource]]:
        outcome = DedupOutcome(duplicates=find_duplicates(sources), lines_before=len(sources))
        outcome.lines_after = outcome.lines_before
        if not outcome.found:
            self.notify("No duplicate adlists found.")
            return outcome, sources

        self.logger.info("duplicates_found", count=len(outcome.duplicates))
        self.notify(f"Found {len(outcome.duplicates)} duplicate adlist(s):")
        for line in outcome.duplicates:
            self.notify(f"  {line}")

        report.stages.append(AuditStage.REWRITE_CONFIRM)
        prompt = (
            f"Remove duplicates and rewrite {self.store.path}? "
            f"A backup will be saved to {self.store.backup_path}."
        )
        if not self.confirm(prompt):
            outcome.declined = True
            self.logger.info("rewrite_declined")
            self.notify("Leaving adlists unchanged.")
            return outcome, sources

        lines = deduplicated_lines(sources)
        outcome.backup_path = self.store.backup()
        self.store.rewrite(lines)
        outcome.rewritten = True
        outcome.lines_after = len(lines)
        self.logger.info(
            "store_rewritten",
            before=outcome.lines_before,
            after=outcome.lines_after,
            backup=str(outcome.backup_path),
        )
        self.notify(f"Duplicates removed. Backup saved to {outcome.backup_path}.")
        return outcome, parse_sources(lines)

    def _probe(self, sources: list[ListSource]) -> list[ProbeResult]:
        total = sum(1 for source in sources if source.is_probeable)
        self.notify(f"Checking {total} adlist(s) for reachability…")
        if self.progress is not None:
            self.progress.start(total)

        def _on_result(result: ProbeResult) -> None:
            if self.progress is not None:
                self.progress.advance(result.reachable, current_url=result.source.normalized)
            if not result.reachable:
                self.notify(f"  Unreachable: {result.source.normalized} [{result.describe()}]")

        try:
            return probe_sources(self.prober, sources, workers=self.workers, on_result=_on_result)
        finally:
            if self.progress is not None:
                self.progress.close()

    def _report(self, report: AuditReport) -> None:
        if report.unreachable_count == 0:
            self.notify(REACHABLE_MESSAGE)
            return
        self.notify(
            f"{report.unreachable_count} of {report.probed_count} adlist(s) unreachable."
        )
        if report.network_suspect:
            self.logger.warning("audit_network_suspect", probed=report.probed_count)
            self.notify(NETWORK_WARNING)
        self.notify(RECOMMENDATION)


def run_audit(
    config: AuditConfig,
    confirm: Callable[[str], bool],
    notify: Callable[[str], None] | None = None,
    progress: ProgressSink | None = None,
    prober: Prober | None = None,
    workers: int | None = None,
    timeout: float | None = None,
) -> AuditReport:
    """Audit the configured store with an HTTP prober unless one is given."""

    store = ListStore(config.adlists_path, backup_suffix=config.backup_suffix)
    effective_workers = workers if workers is not None else config.probe.workers
    owned: HttpProber | None = None
    if prober is None:
        owned = HttpProber(
            timeout=timeout if timeout is not None else config.probe.timeout,
            follow_redirects=config.probe.follow_redirects,
            user_agent=config.probe.user_agent,
        )
    with owned if owned is not None else nullcontext():
        orchestrator = AuditOrchestrator(
            store,
            prober or owned,
            confirm,
            notify=notify,
            workers=effective_workers,
            progress=progress,
        )
        return orchestrator.run()


__all__ = [
    "AuditOrchestrator",
    "AuditReport",
    "AuditStage",
    "DedupOutcome",
    "NETWORK_WARNING",
    "REACHABLE_MESSAGE",
    "RECOMMENDATION",
    "run_audit",
]
