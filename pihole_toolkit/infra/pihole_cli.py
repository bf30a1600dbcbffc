"""Adapter around the ``pihole`` management command."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

import structlog

from ..config import CommandConfig
from ..errors import CommandError

_DNS_RUNNING_RE = re.compile(r"dns service is running|ftl is listening", re.IGNORECASE)
_BLOCKING_ENABLED_RE = re.compile(r"blocking is enabled", re.IGNORECASE)
_DURATION_RE = re.compile(r"^\d+[smhd]?$")

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass(slots=True)
class CommandResult:
    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return (self.stdout + self.stderr).strip()


@dataclass(slots=True)
class PiholeStatus:
    dns_running: bool
    blocking_enabled: bool
    raw: str


class PiholeCLI:
    """Run ``pihole`` subcommands either captured or attached to the terminal."""

    def __init__(
        self,
        config: CommandConfig | None = None,
        runner: Runner = subprocess.run,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config or CommandConfig()
        self._runner = runner
        self.logger = logger or structlog.get_logger("pihole_toolkit").bind(component="pihole_cli")

    # ------------------------------------------------------------------
    # Low-level execution
    # ------------------------------------------------------------------
    def _command(self, binary: str, args: Sequence[str]) -> list[str]:
        prefix = ["sudo"] if self.config.use_sudo else []
        return [*prefix, binary, *args]

    def run_captured(
        self, args: Sequence[str], binary: str | None = None, cwd: Path | None = None
    ) -> CommandResult:
        command = self._command(binary or self.config.pihole_binary, args)
        self.logger.info("command_run", command=command, mode="captured")
        try:
            completed = self._runner(
                command,
                capture_output=True,
                text=True,
                timeout=self.config.timeout,
                check=False,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            raise CommandError(f"Command not found: {command[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandError(
                f"{' '.join(command)} timed out after {self.config.timeout:g}s"
            ) from exc
        result = CommandResult(
            args=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if not result.ok:
            self.logger.warning("command_failed", command=command, returncode=result.returncode)
        return result

    def run_interactive(self, args: Sequence[str], binary: str | None = None) -> int:
        """Run attached to the terminal and return the exit code."""

        command = self._command(binary or self.config.pihole_binary, args)
        self.logger.info("command_run", command=command, mode="interactive")
        try:
            completed = self._runner(command, check=False)
        except FileNotFoundError as exc:
            raise CommandError(f"Command not found: {command[0]}") from exc
        if completed.returncode != 0:
            self.logger.warning("command_failed", command=command, returncode=completed.returncode)
        return completed.returncode

    def _require(
        self, args: Sequence[str], binary: str | None = None, cwd: Path | None = None
    ) -> CommandResult:
        result = self.run_captured(args, binary=binary, cwd=cwd)
        if not result.ok:
            detail = result.output or f"exit code {result.returncode}"
            raise CommandError(f"{' '.join(result.args)} failed: {detail}", result.returncode)
        return result

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    def status(self) -> PiholeStatus:
        result = self.run_captured(["status"])
        text = result.output
        return PiholeStatus(
            dns_running=bool(_DNS_RUNNING_RE.search(text)),
            blocking_enabled=bool(_BLOCKING_ENABLED_RE.search(text)),
            raw=text,
        )

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------
    def allow(self, domain: str) -> CommandResult:
        return self._require(["-w", domain])

    def deny(self, domain: str) -> CommandResult:
        return self._require(["-b", domain])

    def query_adlists(self, domain: str) -> CommandResult:
        return self._require(["-q", domain])

    # ------------------------------------------------------------------
    # Service control
    # ------------------------------------------------------------------
    def enable(self) -> CommandResult:
        return self._require(["enable"])

    def disable(self, duration: str | None = None) -> CommandResult:
        args = ["disable"]
        if duration:
            if not _DURATION_RE.match(duration):
                raise ValueError(f"Invalid disable duration: {duration!r}")
            args.append(duration)
        return self._require(args)

    def restart_dns(self) -> CommandResult:
        return self._require(["restartdns"])

    # ------------------------------------------------------------------
    # Long-running, terminal-attached commands
    # ------------------------------------------------------------------
    def update_gravity(self) -> int:
        return self.run_interactive(["-g"])

    def tail_log(self) -> int:
        return self.run_interactive(["-t"])

    def update_software(self) -> int:
        return self.run_interactive(["-up"])

    def debug(self) -> int:
        return self.run_interactive(["-d"])

    # ------------------------------------------------------------------
    # Teleporter
    # ------------------------------------------------------------------
    def teleporter_backup(self, directory: Path) -> Path:
        """Create a Teleporter archive inside ``directory`` and return its path.

        ``pihole-FTL --teleporter`` without an argument writes the archive to
        its working directory under a name it chooses.
        """

        directory.mkdir(parents=True, exist_ok=True)
        existing = {entry.name for entry in directory.iterdir()}
        self._require(["--teleporter"], binary=self.config.ftl_binary, cwd=directory)
        created = sorted(
            (entry for entry in directory.iterdir() if entry.is_file() and entry.name not in existing),
            key=lambda entry: entry.stat().st_mtime,
        )
        if not created:
            raise CommandError(f"Teleporter reported success but wrote no archive in {directory}")
        archive = created[-1]
        self.logger.info("teleporter_backup_written", path=str(archive))
        return archive

    def teleporter_restore(self, archive: Path) -> CommandResult:
        if not archive.is_file():
            raise CommandError(f"Backup file not found at '{archive}'")
        return self._require(["--teleporter", str(archive)], binary=self.config.ftl_binary)


__all__ = ["CommandResult", "PiholeCLI", "PiholeStatus"]
