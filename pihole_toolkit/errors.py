"""Exception hierarchy shared by the toolkit components."""

from __future__ import annotations

from pathlib import Path


class ToolkitError(Exception):
    """Base class for failures surfaced to the operator."""


class StoreAccessError(ToolkitError):
    """The adlist store could not be read or replaced."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot access adlist store {path}: {reason}")
        self.path = path
        self.reason = reason


class CommandError(ToolkitError):
    """An external command is missing, timed out, or failed."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class ToolMissingError(CommandError):
    """An optional system tool is not installed."""

    def __init__(self, tool: str, hint: str) -> None:
        super().__init__(f"{tool} is not installed. {hint}")
        self.tool = tool
        self.hint = hint


class LogDatabaseError(ToolkitError):
    """The FTL query-log database could not be queried."""


class ConfigWriteError(ToolkitError):
    """A system configuration file could not be read or replaced."""


__all__ = [
    "CommandError",
    "ConfigWriteError",
    "LogDatabaseError",
    "StoreAccessError",
    "ToolMissingError",
    "ToolkitError",
]
