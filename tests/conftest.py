"""Shared fixtures: temp config home, adlist files, fake probers and runners."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, Sequence

import pytest

from pihole_toolkit.audit import ListSource, ListStore, ProbeResult
from pihole_toolkit.config import (
    AuditConfig,
    ConfigLocator,
    ConfigRepository,
    SystemPaths,
    ToolkitConfig,
)


class FakeProber:
    """Deterministic prober: URL -> status code, ``None`` for a timeout, or an exception."""

    def __init__(self, outcomes: dict[str, int | None | BaseException] | None = None, default: int = 200) -> None:
        self.outcomes = outcomes or {}
        self.default = default
        self.calls: list[str] = []

    def check(self, source: ListSource) -> ProbeResult:
        url = source.normalized
        self.calls.append(url)
        outcome = self.outcomes.get(url, self.default)
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is None:
            return ProbeResult(source, reachable=False, error="timed out after 10s")
        return ProbeResult(source, reachable=outcome == 200, status_code=outcome)


class FakeRunner:
    """Stand-in for ``subprocess.run`` recording every command."""

    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls: list[tuple[list[str], dict]] = []
        self.error: BaseException | None = None

    def __call__(self, command: Sequence[str], **kwargs) -> subprocess.CompletedProcess:
        self.calls.append((list(command), kwargs))
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(
            list(command), self.returncode, stdout=self.stdout, stderr=self.stderr
        )

    @property
    def commands(self) -> list[list[str]]:
        return [command for command, _ in self.calls]


class TeleporterRunner(FakeRunner):
    """Writes an archive into the working directory like ``pihole-FTL --teleporter``."""

    archive_name = "pi-hole_raspberrypi_teleporter_2026-10-18_09-30-00_UTC.zip"

    def __call__(self, command: Sequence[str], **kwargs) -> subprocess.CompletedProcess:
        completed = super().__call__(command, **kwargs)
        if kwargs.get("cwd") is not None and completed.returncode == 0:
            (Path(kwargs["cwd"]) / self.archive_name).write_bytes(b"PK\x03\x04")
        return completed


@pytest.fixture
def fake_prober() -> Callable[..., FakeProber]:
    return FakeProber


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def teleporter_runner() -> TeleporterRunner:
    return TeleporterRunner()


@pytest.fixture
def adlist_file(tmp_path: Path) -> Callable[[Iterable[str]], Path]:
    def _write(lines: Iterable[str], name: str = "adlists.list") -> Path:
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def adlist_store(adlist_file) -> Callable[[Iterable[str]], ListStore]:
    def _build(lines: Iterable[str]) -> ListStore:
        return ListStore(adlist_file(lines))

    return _build


@pytest.fixture
def toolkit_config(tmp_path: Path) -> ToolkitConfig:
    return ToolkitConfig(
        audit=AuditConfig(adlists_path=tmp_path / "adlists.list"),
        paths=SystemPaths(
            ftl_db=tmp_path / "pihole-FTL.db",
            gravity_db=tmp_path / "gravity.db",
            dhcpcd_conf=tmp_path / "dhcpcd.conf",
            hosts_file=tmp_path / "hosts",
            viewable_files={"sample.log": tmp_path / "sample.log"},
        ),
        teleporter_dir=tmp_path / "backups",
    )


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("PIHOLE_TOOLKIT_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository
