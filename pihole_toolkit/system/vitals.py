"""Host vitals and the health checks shown on the dashboard."""

from __future__ import annotations

import re
import shutil
import subprocess
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable

from ..errors import CommandError, LogDatabaseError
from ..infra.pihole_cli import PiholeCLI
from ..infra.storage import QueryLogDatabase

THERMAL_ZONE = Path("/sys/class/thermal/thermal_zone0/temp")
_TEMP_RE = re.compile(r"(\d+(?:\.\d+)?)")

Runner = Callable[..., subprocess.CompletedProcess]


class Badge(str, Enum):
    OK = "OK"
    WARN = "WARN"
    FAIL = "FAIL"
    INFO = "INFO"


@dataclass(slots=True)
class HealthCheck:
    label: str
    badge: Badge
    detail: str


def disk_usage_percent(path: Path = Path("/")) -> float:
    usage = shutil.disk_usage(path)
    if usage.total == 0:
        return 0.0
    return round(usage.used / usage.total * 100, 1)


def cpu_temperature(
    runner: Runner = subprocess.run,
    thermal_zone: Path = THERMAL_ZONE,
) -> float | None:
    """CPU temperature in Celsius, or ``None`` when no sensor is readable.

    ``vcgencmd measure_temp`` is preferred on Raspberry Pi; the kernel thermal
    zone (millidegrees) is the fallback.
    """

    if shutil.which("vcgencmd") is not None:
        try:
            completed = runner(
                ["vcgencmd", "measure_temp"], capture_output=True, text=True, check=False
            )
        except OSError:
            completed = None
        if completed is not None and completed.returncode == 0:
            match = _TEMP_RE.search(completed.stdout or "")
            if match:
                return float(match.group(1))
    try:
        raw = thermal_zone.read_text(encoding="utf-8").strip()
        return round(int(raw) / 1000.0, 1)
    except (OSError, ValueError):
        return None


def gravity_age_days(gravity_db: Path, now: float | None = None) -> float | None:
    try:
        mtime = gravity_db.stat().st_mtime
    except FileNotFoundError:
        return None
    elapsed = (now if now is not None else time.time()) - mtime
    return round(max(elapsed, 0.0) / 86400, 1)


def start_of_day(now: datetime | None = None) -> int:
    """Unix timestamp of local midnight for ``now``."""

    moment = now or datetime.now()
    return int(moment.replace(hour=0, minute=0, second=0, microsecond=0).timestamp())


def queries_today(query_log: QueryLogDatabase, now: datetime | None = None) -> HealthCheck:
    try:
        totals = query_log.query_totals(since=start_of_day(now))
    except LogDatabaseError:
        return HealthCheck("Queries today", Badge.WARN, "unavailable")
    total, blocked = totals["total"], totals["blocked"]
    share = blocked / total * 100 if total else 0.0
    return HealthCheck("Queries today", Badge.INFO, f"{total} total, {blocked} blocked ({share:.1f}%)")


def collect_health(
    cli: PiholeCLI,
    gravity_db: Path,
    runner: Runner = subprocess.run,
    thermal_zone: Path = THERMAL_ZONE,
    query_log: QueryLogDatabase | None = None,
    now: datetime | None = None,
) -> list[HealthCheck]:
    checks: list[HealthCheck] = []
    try:
        status = cli.status()
    except CommandError as exc:
        checks.append(HealthCheck("Service", Badge.FAIL, str(exc)))
        checks.append(HealthCheck("Blocking", Badge.WARN, "unknown"))
    else:
        if status.dns_running:
            checks.append(HealthCheck("Service", Badge.OK, "FTL is running"))
        else:
            checks.append(HealthCheck("Service", Badge.FAIL, "FTL is not running"))
        if status.blocking_enabled:
            checks.append(HealthCheck("Blocking", Badge.OK, "Enabled"))
        else:
            checks.append(HealthCheck("Blocking", Badge.WARN, "Disabled"))

    age = gravity_age_days(gravity_db)
    if age is None:
        checks.append(HealthCheck("Gravity DB", Badge.WARN, f"missing ({gravity_db})"))
    else:
        checks.append(HealthCheck("Gravity DB", Badge.INFO, f"{age:g} days old"))
    if query_log is not None:
        checks.append(queries_today(query_log, now))

    checks.append(HealthCheck("Disk usage", Badge.INFO, f"{disk_usage_percent():g}% used"))
    temperature = cpu_temperature(runner=runner, thermal_zone=thermal_zone)
    if temperature is not None:
        checks.append(HealthCheck("CPU temp", Badge.INFO, f"{temperature:g}°C"))
    return checks


__all__ = [
    "Badge",
    "HealthCheck",
    "collect_health",
    "cpu_temperature",
    "disk_usage_percent",
    "gravity_age_days",
    "queries_today",
    "start_of_day",
]
