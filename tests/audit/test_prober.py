from __future__ import annotations

import threading
import time

import httpx
import pytest

from pihole_toolkit.audit.prober import HttpProber, ProbeResult, probe_sources
from pihole_toolkit.audit.store import ListSource, parse_sources


def _prober(handler, **kwargs) -> HttpProber:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpProber(client=client, **kwargs)


def test_http_prober_uses_head_and_accepts_200() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.method)
        return httpx.Response(200)

    result = _prober(handler).check(ListSource("https://lists.example/hosts.txt"))
    assert result.reachable
    assert result.status_code == 200
    assert seen == ["HEAD"]


@pytest.mark.parametrize("status", [204, 301, 403, 404, 500])
def test_http_prober_non_200_is_unreachable(status: int) -> None:
    result = _prober(lambda request: httpx.Response(status)).check(ListSource("https://lists.example/x"))
    assert not result.reachable
    assert result.status_code == status
    assert result.describe() == f"HTTP {status}"


def test_http_prober_timeout_has_no_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    result = _prober(handler, timeout=2.5).check(ListSource("https://slow.example/list"))
    assert not result.reachable
    assert result.status_code is None
    assert result.error == "timed out after 2.5s"


def test_http_prober_connection_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    result = _prober(handler).check(ListSource("https://nxdomain.example/list"))
    assert not result.reachable
    assert result.status_code is None
    assert "Name or service not known" in result.describe()


def test_http_prober_strips_whitespace_before_request() -> None:
    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200)

    _prober(handler).check(ListSource("  https://lists.example/a  "))
    assert urls == ["https://lists.example/a"]


def test_http_prober_closes_owned_client_only() -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    with HttpProber(client=client):
        pass
    assert not client.is_closed


class _RaisingProber:
    def check(self, source: ListSource) -> ProbeResult:
        raise RuntimeError("boom")


def test_probe_sources_records_crash_as_unreachable() -> None:
    results = probe_sources(_RaisingProber(), parse_sources(["https://a"]))
    assert len(results) == 1
    assert not results[0].reachable
    assert results[0].error == "boom"


def test_probe_sources_skips_comments_and_blanks(fake_prober) -> None:
    prober = fake_prober()
    results = probe_sources(prober, parse_sources(["# comment", "", "https://a", "  ", "https://b"]))
    assert prober.calls == ["https://a", "https://b"]
    assert [result.source.line_number for result in results] == [3, 5]


def test_probe_sources_reports_each_result(fake_prober) -> None:
    seen: list[str] = []
    probe_sources(
        fake_prober({"https://b": 404}),
        parse_sources(["https://a", "https://b"]),
        on_result=lambda result: seen.append(result.source.normalized),
    )
    assert seen == ["https://a", "https://b"]


class _SlowFirstProber:
    """Earlier lines take longer, so completion order is reversed."""

    def __init__(self, total: int) -> None:
        self.total = total
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def check(self, source: ListSource) -> ProbeResult:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(0.02 * (self.total - source.line_number))
        with self._lock:
            self.active -= 1
        return ProbeResult(source, reachable=True, status_code=200)


def test_probe_sources_parallel_keeps_line_order() -> None:
    sources = parse_sources([f"https://list{index}.example" for index in range(6)])
    prober = _SlowFirstProber(total=len(sources))
    completed: list[int] = []
    results = probe_sources(
        prober,
        sources,
        workers=3,
        on_result=lambda result: completed.append(result.source.line_number),
    )
    assert [result.source.line_number for result in results] == [1, 2, 3, 4, 5, 6]
    assert sorted(completed) == [1, 2, 3, 4, 5, 6]
    assert prober.peak <= 3


def test_probe_sources_interrupt_propagates(fake_prober) -> None:
    prober = fake_prober({"https://b": KeyboardInterrupt()})
    with pytest.raises(KeyboardInterrupt):
        probe_sources(prober, parse_sources(["https://a", "https://b", "https://c"]))
    assert prober.calls == ["https://a", "https://b"]
