"""structlog on top of stdlib handlers writing JSON lines under ``logs/``."""

from __future__ import annotations

import logging.config
from pathlib import Path

import structlog

from .config.loader import ConfigLocator

LOG_FILES = {
    "toolkit": "toolkit.log",
    "audit": "audit.log",
    "error": "error.log",
}
# SD-card friendly: a handful of small files instead of one growing log.
MAX_LOG_BYTES = 1_000_000
LOG_BACKUPS = 3

_configured = False


def log_dir() -> Path:
    return ConfigLocator().logs_dir


def log_file_path(name: str = "toolkit") -> Path:
    try:
        filename = LOG_FILES[name]
    except KeyError as exc:
        raise ValueError(f"Unknown log {name!r}; choose from {', '.join(LOG_FILES)}") from exc
    return log_dir() / filename


def toolkit_log_path() -> Path:
    return log_file_path("toolkit")


def _rotating(filename: Path, level: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "filename": str(filename),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": LOG_BACKUPS,
        "encoding": "utf-8",
        "formatter": "json",
    }


def build_logging_config(directory: Path, verbose: bool = False) -> dict:
    """dictConfig payload: quiet console, rotating JSON files, audit runs split out."""

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            }
        },
        "handlers": {
            # The console is shared with the menu prompts.
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG" if verbose else "WARNING",
                "formatter": "json",
            },
            "toolkit_file": _rotating(directory / LOG_FILES["toolkit"], "INFO"),
            "audit_file": _rotating(directory / LOG_FILES["audit"], "INFO"),
            "error_file": _rotating(directory / LOG_FILES["error"], "ERROR"),
        },
        "loggers": {
            "pihole_toolkit": {
                "handlers": ["console", "toolkit_file", "error_file"],
                "level": "DEBUG" if verbose else "INFO",
                "propagate": False,
            },
            "pihole_toolkit.audit": {
                "handlers": ["audit_file"],
                "propagate": True,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Set up handlers once per process and return the root toolkit logger."""

    global _configured
    if not _configured:
        directory = log_dir()
        for filename in LOG_FILES.values():
            (directory / filename).touch(exist_ok=True)
        logging.config.dictConfig(build_logging_config(directory, verbose))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _configured = True
    return structlog.get_logger("pihole_toolkit")


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if line_count <= 0 or not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        return stream.readlines()[-line_count:]


__all__ = [
    "LOG_FILES",
    "build_logging_config",
    "configure_logging",
    "log_dir",
    "log_file_path",
    "tail_log",
    "toolkit_log_path",
]
