"""Pydantic models used across the toolkit configuration flow."""

from __future__ import annotations

import ipaddress
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

_INTERFACE_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:-]{0,14}$")


class ProbeConfig(BaseModel):
    """Reachability probe settings for the adlist audit."""

    timeout: float = 10.0
    workers: int = 1
    follow_redirects: bool = False
    user_agent: str = "pihole-toolkit/0.3 (adlist audit)"

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("probe timeout must be > 0")
        return value

    @field_validator("workers")
    @classmethod
    def _positive_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("probe workers must be >= 1")
        return value


class AuditConfig(BaseModel):
    """Where the adlist store lives and how it is audited."""

    adlists_path: Path = Field(default=Path("/etc/pihole/adlists.list"))
    backup_suffix: str = ".bak"
    probe: ProbeConfig = Field(default_factory=ProbeConfig)

    @field_validator("adlists_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("backup_suffix")
    @classmethod
    def _validate_suffix(cls, value: str) -> str:
        if not value or not value.startswith(".") or "/" in value:
            raise ValueError("backup_suffix must start with '.' and contain no '/'")
        return value


def _default_viewable_files() -> dict[str, Path]:
    return {
        "pihole.log (live query log)": Path("/var/log/pihole/pihole.log"),
        "pihole-FTL.log (DNS resolver log)": Path("/var/log/pihole/pihole-FTL.log"),
        "setupVars.conf (core install settings)": Path("/etc/pihole/setupVars.conf"),
        "pihole-FTL.conf (advanced FTL settings)": Path("/etc/pihole/pihole-FTL.conf"),
        "01-pihole.conf (main dnsmasq config)": Path("/etc/dnsmasq.d/01-pihole.conf"),
        "02-pihole-dhcp.conf (DHCP server config)": Path("/etc/dnsmasq.d/02-pihole-dhcp.conf"),
    }


class SystemPaths(BaseModel):
    """System files read or written by the toolkit."""

    ftl_db: Path = Field(default=Path("/etc/pihole/pihole-FTL.db"))
    gravity_db: Path = Field(default=Path("/etc/pihole/gravity.db"))
    dhcpcd_conf: Path = Field(default=Path("/etc/dhcpcd.conf"))
    hosts_file: Path = Field(default=Path("/etc/hosts"))
    viewable_files: dict[str, Path] = Field(default_factory=_default_viewable_files)

    @field_validator("ftl_db", "gravity_db", "dhcpcd_conf", "hosts_file", mode="before")
    @classmethod
    def _coerce_paths(cls, value: Any) -> Path:
        return Path(value)


class CommandConfig(BaseModel):
    """How external management commands are invoked."""

    pihole_binary: str = "pihole"
    ftl_binary: str = "pihole-FTL"
    use_sudo: bool = False
    timeout: float = 60.0

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("command timeout must be > 0")
        return value


class StaticIPConfig(BaseModel):
    """One static address assignment for dhcpcd."""

    interface: str
    ip_address: str
    routers: str
    dns_servers: list[str] = Field(default_factory=list)

    @field_validator("interface")
    @classmethod
    def _validate_interface(cls, value: str) -> str:
        value = value.strip()
        if not _INTERFACE_RE.match(value):
            raise ValueError(f"Invalid interface name: {value!r}")
        return value

    @field_validator("ip_address")
    @classmethod
    def _validate_address(cls, value: str) -> str:
        value = value.strip()
        if "/" not in value:
            raise ValueError("ip_address must use CIDR notation, e.g. 192.168.1.2/24")
        try:
            return str(ipaddress.ip_interface(value))
        except ValueError as exc:
            raise ValueError(f"Invalid ip_address: {value!r}") from exc

    @field_validator("routers")
    @classmethod
    def _validate_router(cls, value: str) -> str:
        try:
            return str(ipaddress.ip_address(value.strip()))
        except ValueError as exc:
            raise ValueError(f"Invalid router address: {value!r}") from exc

    @field_validator("dns_servers", mode="before")
    @classmethod
    def _split_dns(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = value.replace(",", " ").split()
        servers: list[str] = []
        for item in value or []:
            try:
                servers.append(str(ipaddress.ip_address(str(item).strip())))
            except ValueError as exc:
                raise ValueError(f"Invalid DNS server: {item!r}") from exc
        return servers

    @model_validator(mode="after")
    def _validate_network(self) -> "StaticIPConfig":
        if not self.dns_servers:
            raise ValueError("At least one DNS server is required")
        network = ipaddress.ip_interface(self.ip_address).network
        if ipaddress.ip_address(self.routers) not in network:
            raise ValueError(f"Router {self.routers} is outside {network}")
        return self

    def render_lines(self) -> list[str]:
        return [
            f"interface {self.interface}",
            f"static ip_address={self.ip_address}",
            f"static routers={self.routers}",
            f"static domain_name_servers={' '.join(self.dns_servers)}",
        ]


class ToolkitConfig(BaseModel):
    """Top-level toolkit settings."""

    audit: AuditConfig = Field(default_factory=AuditConfig)
    paths: SystemPaths = Field(default_factory=SystemPaths)
    commands: CommandConfig = Field(default_factory=CommandConfig)
    teleporter_dir: Path = Field(default=Path("."))
    top_limit: int = 10

    @field_validator("teleporter_dir", mode="before")
    @classmethod
    def _coerce_dir(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("top_limit")
    @classmethod
    def _validate_limit(cls, value: int) -> int:
        if value < 1:
            raise ValueError("top_limit must be >= 1")
        return value


def format_validation_error(exc: ValidationError) -> str:
    """One line per failing field, e.g. ``audit.probe.timeout: probe timeout must be > 0``."""

    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value").removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "\n".join(messages)


__all__ = [
    "AuditConfig",
    "CommandConfig",
    "ProbeConfig",
    "StaticIPConfig",
    "SystemPaths",
    "ToolkitConfig",
    "format_validation_error",
]
