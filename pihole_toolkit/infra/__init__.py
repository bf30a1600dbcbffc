"""Infra layer utilities (external commands, query log, file replacement)."""

from .files import atomic_write_text, backup_file, backup_path_for
from .pihole_cli import CommandResult, PiholeCLI, PiholeStatus
from .storage import QueryLogDatabase

__all__ = [
    "CommandResult",
    "PiholeCLI",
    "PiholeStatus",
    "QueryLogDatabase",
    "atomic_write_text",
    "backup_file",
    "backup_path_for",
]
