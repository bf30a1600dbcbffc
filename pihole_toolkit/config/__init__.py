"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    AuditConfig,
    CommandConfig,
    ProbeConfig,
    StaticIPConfig,
    SystemPaths,
    ToolkitConfig,
    format_validation_error,
)

__all__ = [
    "AuditConfig",
    "CommandConfig",
    "ConfigLocator",
    "ConfigRepository",
    "ProbeConfig",
    "StaticIPConfig",
    "SystemPaths",
    "ToolkitConfig",
    "format_validation_error",
]
