"""Network configuration: dhcpcd static address block, hostname, LAN scan."""

from __future__ import annotations

import re
import shutil
import socket
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import structlog

from ..config import StaticIPConfig
from ..errors import CommandError, ConfigWriteError, ToolMissingError
from ..infra.files import atomic_write_text, backup_file

BLOCK_START = "# >>> pihole-toolkit static ip >>>"
BLOCK_END = "# <<< pihole-toolkit static ip <<<"
_BLOCK_RE = re.compile(
    rf"\n*^{re.escape(BLOCK_START)}$.*?^{re.escape(BLOCK_END)}$\n?",
    re.MULTILINE | re.DOTALL,
)
_HOSTNAME_LABEL_RE = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
LOOPBACK_HOST_ADDRESS = "127.0.1.1"

Runner = Callable[..., subprocess.CompletedProcess]


def is_valid_hostname(name: str) -> bool:
    if not name or len(name) > 253:
        return False
    return all(_HOSTNAME_LABEL_RE.match(label) for label in name.rstrip(".").split("."))


def is_valid_domain(domain: str) -> bool:
    """Hostname syntax with an optional leading ``*.`` wildcard."""
    candidate = domain[2:] if domain.startswith("*.") else domain
    return "." in candidate.strip(".") and is_valid_hostname(candidate)


# ----------------------------------------------------------------------
# Static IP
# ----------------------------------------------------------------------
def render_static_block(config: StaticIPConfig) -> str:
    return "\n".join([BLOCK_START, *config.render_lines(), BLOCK_END]) + "\n"


def strip_static_block(text: str) -> str:
    if not _BLOCK_RE.search(text):
        return text
    # A block at the very top leaves nothing to separate.
    stripped = _BLOCK_RE.sub(lambda match: "" if match.start() == 0 else "\n", text).rstrip("\n")
    return f"{stripped}\n" if stripped else ""


def apply_static_block(text: str, config: StaticIPConfig) -> str:
    """Return ``text`` with exactly one managed block, placed at the end."""

    base = strip_static_block(text).rstrip("\n")
    block = render_static_block(config)
    if not base:
        return block
    return f"{base}\n\n{block}"


def current_static_block(text: str) -> StaticIPConfig | None:
    match = _BLOCK_RE.search(text)
    if not match:
        return None
    values: dict[str, str] = {}
    for line in match.group(0).splitlines():
        line = line.strip()
        if line.startswith("interface "):
            values["interface"] = line.split(None, 1)[1]
        elif line.startswith("static ") and "=" in line:
            key, _, value = line[len("static "):].partition("=")
            values[key.strip()] = value.strip()
    try:
        return StaticIPConfig(
            interface=values.get("interface", ""),
            ip_address=values.get("ip_address", ""),
            routers=values.get("routers", ""),
            dns_servers=values.get("domain_name_servers", ""),
        )
    except ValueError:
        return None


@dataclass(slots=True)
class StaticIPWriteResult:
    changed: bool
    backup_path: Path | None = None


class StaticIPWriter:
    """Maintain the toolkit-owned static address block in ``dhcpcd.conf``."""

    def __init__(
        self,
        conf_path: Path,
        backup_suffix: str = ".bak",
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.conf_path = Path(conf_path)
        self.backup_suffix = backup_suffix
        self.logger = logger or structlog.get_logger("pihole_toolkit").bind(component="static_ip")

    def read(self) -> str:
        try:
            return self.conf_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigWriteError(f"Cannot read {self.conf_path}: {exc}") from exc

    def current(self) -> StaticIPConfig | None:
        return current_static_block(self.read())

    def preview(self, config: StaticIPConfig) -> str:
        return render_static_block(config)

    def apply(self, config: StaticIPConfig) -> StaticIPWriteResult:
        original = self.read()
        updated = apply_static_block(original, config)
        if updated == original:
            self.logger.info("static_ip_unchanged", path=str(self.conf_path))
            return StaticIPWriteResult(changed=False)
        try:
            backup = backup_file(self.conf_path, self.backup_suffix) if self.conf_path.exists() else None
            atomic_write_text(self.conf_path, updated)
        except OSError as exc:
            raise ConfigWriteError(f"Cannot write {self.conf_path}: {exc}") from exc
        self.logger.info(
            "static_ip_written",
            path=str(self.conf_path),
            interface=config.interface,
            address=config.ip_address,
        )
        return StaticIPWriteResult(changed=True, backup_path=backup)


# ----------------------------------------------------------------------
# Hostname
# ----------------------------------------------------------------------
def rewrite_hosts_record(text: str, old_name: str, new_name: str) -> str:
    """Point the ``127.0.1.1`` record at ``new_name``.

    Replaces the record naming ``old_name``; appends one when none exists.
    """

    pattern = re.compile(
        rf"^{re.escape(LOOPBACK_HOST_ADDRESS)}[ \t]+(?:.*[ \t])?{re.escape(old_name)}(?:[ \t].*)?$",
        re.MULTILINE,
    )
    replacement = f"{LOOPBACK_HOST_ADDRESS}\t{new_name}"
    if pattern.search(text):
        return pattern.sub(replacement, text)
    body = text if not text or text.endswith("\n") else text + "\n"
    return f"{body}{replacement}\n"


class HostnameManager:
    """Change the system hostname and keep the hosts file consistent."""

    def __init__(
        self,
        hosts_path: Path,
        runner: Runner = subprocess.run,
        use_sudo: bool = False,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.hosts_path = Path(hosts_path)
        self._runner = runner
        self.use_sudo = use_sudo
        self.logger = logger or structlog.get_logger("pihole_toolkit").bind(component="hostname")

    def current(self) -> str:
        return socket.gethostname()

    def change(self, new_name: str, old_name: str | None = None) -> None:
        new_name = new_name.strip()
        if not is_valid_hostname(new_name):
            raise ValueError(f"Invalid hostname: {new_name!r}")
        old_name = old_name or self.current()
        command = [*(["sudo"] if self.use_sudo else []), "hostnamectl", "set-hostname", new_name]
        try:
            completed = self._runner(command, capture_output=True, text=True, check=False)
        except FileNotFoundError as exc:
            raise CommandError("hostnamectl is not available on this system") from exc
        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            raise CommandError(f"hostnamectl failed: {detail}", completed.returncode)
        try:
            text = self.hosts_path.read_text(encoding="utf-8") if self.hosts_path.exists() else ""
            atomic_write_text(self.hosts_path, rewrite_hosts_record(text, old_name, new_name))
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigWriteError(f"Cannot update {self.hosts_path}: {exc}") from exc
        self.logger.info("hostname_changed", old=old_name, new=new_name)


# ----------------------------------------------------------------------
# LAN scan
# ----------------------------------------------------------------------
ARP_SCAN_HINT = "Install it with: sudo apt update && sudo apt install arp-scan"


def scan_network(runner: Runner = subprocess.run, use_sudo: bool = True) -> int:
    """Run ``arp-scan --localnet`` attached to the terminal."""

    if shutil.which("arp-scan") is None:
        raise ToolMissingError("arp-scan", ARP_SCAN_HINT)
    command = [*(["sudo"] if use_sudo else []), "arp-scan", "--localnet"]
    return runner(command, check=False).returncode


__all__ = [
    "BLOCK_END",
    "BLOCK_START",
    "HostnameManager",
    "StaticIPWriteResult",
    "StaticIPWriter",
    "apply_static_block",
    "current_static_block",
    "is_valid_domain",
    "is_valid_hostname",
    "render_static_block",
    "rewrite_hosts_record",
    "scan_network",
    "strip_static_block",
]
