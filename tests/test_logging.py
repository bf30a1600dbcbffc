from __future__ import annotations

from pathlib import Path

import pytest

from pihole_toolkit import logging_conf
from pihole_toolkit.logging_conf import (
    build_logging_config,
    configure_logging,
    log_file_path,
    tail_log,
    toolkit_log_path,
)


@pytest.fixture
def toolkit_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("PIHOLE_TOOLKIT_HOME", str(tmp_path))
    return tmp_path


def test_log_paths_follow_home(toolkit_home: Path) -> None:
    logs = toolkit_home.resolve() / "logs"
    assert toolkit_log_path() == logs / "toolkit.log"
    assert log_file_path("audit") == logs / "audit.log"
    with pytest.raises(ValueError, match="Unknown log"):
        log_file_path("crawler")


def test_logging_config_routes_audit_events(tmp_path: Path) -> None:
    config = build_logging_config(tmp_path)
    assert config["handlers"]["console"]["level"] == "WARNING"
    assert config["handlers"]["audit_file"]["filename"] == str(tmp_path / "audit.log")
    assert config["handlers"]["toolkit_file"]["class"] == "logging.handlers.RotatingFileHandler"
    assert config["loggers"]["pihole_toolkit"]["level"] == "INFO"
    assert config["loggers"]["pihole_toolkit.audit"] == {"handlers": ["audit_file"], "propagate": True}


def test_verbose_lowers_console_level(tmp_path: Path) -> None:
    config = build_logging_config(tmp_path, verbose=True)
    assert config["handlers"]["console"]["level"] == "DEBUG"
    assert config["loggers"]["pihole_toolkit"]["level"] == "DEBUG"


def test_configure_logging_creates_files_once(toolkit_home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    applied: list[dict] = []
    monkeypatch.setattr(logging_conf, "_configured", False)
    monkeypatch.setattr(logging_conf.logging.config, "dictConfig", applied.append)
    monkeypatch.setattr(logging_conf.structlog, "configure", lambda **kwargs: None)

    configure_logging()
    configure_logging(verbose=True)

    logs = toolkit_home.resolve() / "logs"
    assert sorted(entry.name for entry in logs.iterdir()) == ["audit.log", "error.log", "toolkit.log"]
    assert len(applied) == 1


def test_tail_log_returns_last_lines(tmp_path: Path) -> None:
    path = tmp_path / "toolkit.log"
    path.write_text("a\nb\nc\n", encoding="utf-8")
    assert tail_log(path, 2) == ["b\n", "c\n"]
    assert tail_log(path, 0) == []
    assert tail_log(tmp_path / "missing.log") == []
