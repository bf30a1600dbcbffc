"""System-level helpers: networking files, hostname, vitals."""

from .network import (
    HostnameManager,
    StaticIPWriteResult,
    StaticIPWriter,
    apply_static_block,
    current_static_block,
    is_valid_domain,
    is_valid_hostname,
    render_static_block,
    rewrite_hosts_record,
    scan_network,
)
from .vitals import Badge, HealthCheck, collect_health, cpu_temperature, disk_usage_percent, gravity_age_days

__all__ = [
    "Badge",
    "HealthCheck",
    "HostnameManager",
    "StaticIPWriteResult",
    "StaticIPWriter",
    "apply_static_block",
    "collect_health",
    "cpu_temperature",
    "current_static_block",
    "disk_usage_percent",
    "gravity_age_days",
    "is_valid_domain",
    "is_valid_hostname",
    "render_static_block",
    "rewrite_hosts_record",
    "scan_network",
]
