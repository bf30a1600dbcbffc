"""Rich renderables shared by the CLI commands and the interactive menu."""

from __future__ import annotations

from typing import Sequence

from rich import box
from rich.table import Table

from ..audit import AuditReport
from ..system import Badge, HealthCheck

BADGE_STYLES = {
    Badge.OK: "green",
    Badge.WARN: "yellow",
    Badge.FAIL: "red",
    Badge.INFO: "blue",
}


def render_health_table(checks: Sequence[HealthCheck]) -> Table:
    table = Table(title="Pi-hole Health Dashboard", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center", no_wrap=True)
    table.add_column("Detail", overflow="fold")
    for check in checks:
        style = BADGE_STYLES[check.badge]
        table.add_row(check.label, f"[{style}]{check.badge.value}[/{style}]", check.detail)
    return table


def render_top_table(title: str, label: str, rows: Sequence[tuple[str, int]]) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("#", style="dim", justify="right")
    table.add_column(label, style="cyan", overflow="fold")
    table.add_column("Queries", style="magenta", justify="right")
    for index, (name, total) in enumerate(rows, start=1):
        table.add_row(str(index), name, str(total))
    return table


def render_audit_summary(report: AuditReport) -> Table:
    table = Table(title="Adlist audit", box=box.MINIMAL_DOUBLE_HEAD, show_header=False, pad_edge=False)
    table.add_column("Item", style="dim")
    table.add_column("Value", style="cyan", overflow="fold")
    table.add_row("Store", str(report.store_path))
    dedup = report.dedup
    if dedup is not None:
        table.add_row("Duplicates", str(len(dedup.duplicates)))
        if dedup.rewritten:
            table.add_row("Rewrite", f"{dedup.lines_before} → {dedup.lines_after} lines")
            table.add_row("Backup", str(dedup.backup_path))
        elif dedup.declined:
            table.add_row("Rewrite", "declined")
    table.add_row("Probed", str(report.probed_count))
    unreachable_style = "green" if report.unreachable_count == 0 else "red"
    table.add_row("Unreachable", f"[{unreachable_style}]{report.unreachable_count}[/{unreachable_style}]")
    return table


__all__ = ["BADGE_STYLES", "render_audit_summary", "render_health_table", "render_top_table"]
