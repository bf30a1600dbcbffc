"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.status import Status


@dataclass
class ProbeProgressState:
    total: int
    reachable: int = 0
    unreachable: int = 0
    current_url: str | None = None


class ProbeProgress:
    """Render probe progress and keep reachable/unreachable counters."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.state: ProbeProgressState | None = None

    def start(self, total: int) -> None:
        self.state = ProbeProgressState(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            # Non-interactive output: counters only, no live bar.
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]Probing adlists"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            TextColumn("[green]✓{task.fields[reachable]:>3}", justify="right"),
            TextColumn("[red]✗{task.fields[unreachable]:>3}", justify="right"),
            TextColumn("[dim]{task.fields[current_url]}", justify="left"),
            refresh_per_second=12,
            expand=True,
            transient=True,
            console=self._console,
        )
        try:
            self._progress.__enter__()
        except LiveError:
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "probe", total=total, reachable=0, unreachable=0, current_url="waiting…"
        )

    def advance(self, reachable: bool, current_url: str | None = None) -> None:
        if not self.state:
            raise RuntimeError("ProbeProgress.start must be called before advance")
        if current_url:
            self.state.current_url = current_url
        if reachable:
            self.state.reachable += 1
        else:
            self.state.unreachable += 1
        if self._progress is not None and self._task_id is not None:
            display_url = self.state.current_url or ""
            if len(display_url) > 60:
                display_url = display_url[:57] + "..."
            self._progress.update(
                self._task_id,
                advance=1,
                reachable=self.state.reachable,
                unreachable=self.state.unreachable,
                current_url=display_url,
            )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress.__exit__(None, None, None)
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if not self.state:
            return {"reachable": 0, "unreachable": 0}
        return {"reachable": self.state.reachable, "unreachable": self.state.unreachable}


class ProgressActivity:
    """Indeterminate activity indicator using Rich Status spinner."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self.console = console or Console()
        self._status: Status | None = None

    def __enter__(self) -> "ProgressActivity":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def start(self, message: str) -> "ProgressActivity":
        if self.enabled and self._status is None and self.console.is_terminal:
            self._status = self.console.status(message)
            self._status.start()
        return self

    def close(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


__all__ = ["ProbeProgress", "ProbeProgressState", "ProgressActivity"]
