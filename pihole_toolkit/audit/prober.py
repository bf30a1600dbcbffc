"""Reachability probing of adlist URLs."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

import httpx
import structlog

from .store import ListSource

SUCCESS_STATUS = 200


@dataclass(slots=True, frozen=True)
class ProbeResult:
    """Outcome of checking one list source."""

    source: ListSource
    reachable: bool
    status_code: int | None = None
    error: str | None = None

    def describe(self) -> str:
        if self.status_code is not None:
            return f"HTTP {self.status_code}"
        return f"no response ({self.error or 'unknown error'})"


class Prober(Protocol):
    """Capability used by the audit to classify a list source."""

    def check(self, source: ListSource) -> ProbeResult: ...


class HttpProber:
    """Issue one HEAD request per source with a bounded timeout."""

    def __init__(
        self,
        timeout: float = 10.0,
        follow_redirects: bool = False,
        user_agent: str | None = None,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.timeout = timeout
        self.logger = logger or structlog.get_logger("pihole_toolkit.audit.prober")
        self._owns_client = client is None
        self._client = client or httpx.Client(
            follow_redirects=follow_redirects,
            timeout=timeout,
            headers={"User-Agent": user_agent} if user_agent else None,
        )

    def __enter__(self) -> "HttpProber":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def check(self, source: ListSource) -> ProbeResult:
        url = source.normalized
        try:
            response = self._client.head(url, timeout=self.timeout)
        except httpx.TimeoutException:
            self.logger.info("probe_timeout", url=url, timeout=self.timeout)
            return ProbeResult(source, reachable=False, error=f"timed out after {self.timeout:g}s")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.logger.info("probe_failed", url=url, error=str(exc))
            return ProbeResult(source, reachable=False, error=str(exc) or type(exc).__name__)
        reachable = response.status_code == SUCCESS_STATUS
        if not reachable:
            self.logger.info("probe_bad_status", url=url, status=response.status_code)
        return ProbeResult(source, reachable=reachable, status_code=response.status_code)


def _safe_check(prober: Prober, source: ListSource) -> ProbeResult:
    try:
        return prober.check(source)
    except Exception as exc:  # noqa: BLE001
        structlog.get_logger("pihole_toolkit.audit.prober").warning(
            "probe_crashed", url=source.normalized, error=str(exc)
        )
        return ProbeResult(source, reachable=False, error=str(exc) or type(exc).__name__)


def probe_sources(
    prober: Prober,
    sources: Sequence[ListSource],
    workers: int = 1,
    on_result: Callable[[ProbeResult], None] | None = None,
) -> list[ProbeResult]:
    """Probe every URL line and return results in original line order.

    ``on_result`` fires as each probe resolves. With ``workers > 1`` probes run
    on a bounded thread pool; an interrupt cancels the queued ones.
    """

    targets = [source for source in sources if source.is_probeable]
    if workers <= 1 or len(targets) <= 1:
        results: list[ProbeResult] = []
        for source in targets:
            result = _safe_check(prober, source)
            if on_result:
                on_result(result)
            results.append(result)
        return results

    ordered: list[ProbeResult | None] = [None] * len(targets)
    executor = ThreadPoolExecutor(max_workers=min(workers, len(targets)), thread_name_prefix="probe")
    try:
        futures = {
            executor.submit(_safe_check, prober, source): index
            for index, source in enumerate(targets)
        }
        for future in as_completed(futures):
            result = future.result()
            ordered[futures[future]] = result
            if on_result:
                on_result(result)
    except BaseException:
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    executor.shutdown(wait=True)
    return [result for result in ordered if result is not None]


__all__ = ["HttpProber", "ProbeResult", "Prober", "SUCCESS_STATUS", "probe_sources"]
