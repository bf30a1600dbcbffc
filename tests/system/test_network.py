from __future__ import annotations

from pathlib import Path

import pytest

from pihole_toolkit.config import StaticIPConfig
from pihole_toolkit.errors import CommandError, ToolMissingError
from pihole_toolkit.system import network
from pihole_toolkit.system.network import (
    BLOCK_END,
    BLOCK_START,
    HostnameManager,
    StaticIPWriter,
    apply_static_block,
    current_static_block,
    is_valid_domain,
    is_valid_hostname,
    render_static_block,
    rewrite_hosts_record,
    scan_network,
    strip_static_block,
)

DHCPCD_BASE = "hostname\nclientid\npersistent\noption rapid_commit\n"


def _config(address: str = "192.168.1.2/24", dns: str = "127.0.0.1") -> StaticIPConfig:
    return StaticIPConfig(interface="eth0", ip_address=address, routers="192.168.1.1", dns_servers=dns)


@pytest.mark.parametrize(
    ("name", "expected"),
    [("pihole", True), ("pi-hole.lan", True), ("-bad", False), ("bad-", False), ("has space", False), ("", False)],
)
def test_is_valid_hostname(name: str, expected: bool) -> None:
    assert is_valid_hostname(name) is expected


@pytest.mark.parametrize(
    ("domain", "expected"),
    [("example.com", True), ("*.example.com", True), ("localhost", False), ("exa mple.com", False), ("*.", False)],
)
def test_is_valid_domain(domain: str, expected: bool) -> None:
    assert is_valid_domain(domain) is expected


def test_apply_appends_block_after_blank_line() -> None:
    text = apply_static_block(DHCPCD_BASE, _config())
    assert text == (
        DHCPCD_BASE
        + "\n"
        + f"{BLOCK_START}\n"
        + "interface eth0\n"
        + "static ip_address=192.168.1.2/24\n"
        + "static routers=192.168.1.1\n"
        + "static domain_name_servers=127.0.0.1\n"
        + f"{BLOCK_END}\n"
    )


def test_apply_is_idempotent() -> None:
    once = apply_static_block(DHCPCD_BASE, _config())
    assert apply_static_block(once, _config()) == once


def test_apply_replaces_existing_block_only() -> None:
    first = apply_static_block(DHCPCD_BASE, _config())
    second = apply_static_block(first, _config(address="192.168.1.50/24"))
    assert second.count(BLOCK_START) == 1
    assert "static ip_address=192.168.1.50/24" in second
    assert "192.168.1.2/24" not in second
    assert second.startswith(DHCPCD_BASE)


def test_block_in_middle_keeps_surrounding_lines() -> None:
    block = f"{BLOCK_START}\ninterface eth0\n{BLOCK_END}\n"
    text = f"alpha\n\n{block}\nomega\n"
    assert strip_static_block(text) == "alpha\n\nomega\n"


def test_strip_without_block_is_noop() -> None:
    assert strip_static_block(DHCPCD_BASE) == DHCPCD_BASE


def test_current_static_block_roundtrip() -> None:
    config = _config(dns="1.1.1.1 9.9.9.9")
    parsed = current_static_block(apply_static_block(DHCPCD_BASE, config))
    assert parsed == config
    assert current_static_block(DHCPCD_BASE) is None


def test_writer_backs_up_and_writes(tmp_path: Path) -> None:
    conf = tmp_path / "dhcpcd.conf"
    conf.write_text(DHCPCD_BASE, encoding="utf-8")
    writer = StaticIPWriter(conf)

    result = writer.apply(_config())

    assert result.changed
    assert result.backup_path == tmp_path / "dhcpcd.conf.bak"
    assert result.backup_path.read_text(encoding="utf-8") == DHCPCD_BASE
    assert writer.current() == _config()


def test_writer_second_apply_reports_no_change(tmp_path: Path) -> None:
    conf = tmp_path / "dhcpcd.conf"
    conf.write_text(DHCPCD_BASE, encoding="utf-8")
    writer = StaticIPWriter(conf)
    writer.apply(_config())
    (tmp_path / "dhcpcd.conf.bak").unlink()

    result = writer.apply(_config())

    assert not result.changed
    assert result.backup_path is None
    assert not (tmp_path / "dhcpcd.conf.bak").exists()


def test_writer_creates_missing_file_without_backup(tmp_path: Path) -> None:
    conf = tmp_path / "dhcpcd.conf"
    result = StaticIPWriter(conf).apply(_config())
    assert result.changed
    assert result.backup_path is None
    assert conf.read_text(encoding="utf-8").startswith(BLOCK_START)


def test_rewrite_hosts_replaces_loopback_record() -> None:
    text = "127.0.0.1\tlocalhost\n127.0.1.1\tpihole\n::1 localhost\n"
    assert rewrite_hosts_record(text, "pihole", "dns01") == "127.0.0.1\tlocalhost\n127.0.1.1\tdns01\n::1 localhost\n"


def test_rewrite_hosts_does_not_match_partial_names() -> None:
    text = "127.0.1.1\tpi-hole\n"
    assert rewrite_hosts_record(text, "pi", "dns01") == "127.0.1.1\tpi-hole\n127.0.1.1\tdns01\n"


def test_rewrite_hosts_appends_when_missing() -> None:
    assert rewrite_hosts_record("127.0.0.1 localhost", "old", "new") == "127.0.0.1 localhost\n127.0.1.1\tnew\n"


def test_hostname_change_runs_hostnamectl_and_updates_hosts(tmp_path: Path, fake_runner) -> None:
    hosts = tmp_path / "hosts"
    hosts.write_text("127.0.0.1\tlocalhost\n127.0.1.1\traspberrypi\n", encoding="utf-8")
    manager = HostnameManager(hosts, runner=fake_runner, use_sudo=True)

    manager.change("pihole", old_name="raspberrypi")

    assert fake_runner.commands == [["sudo", "hostnamectl", "set-hostname", "pihole"]]
    assert "127.0.1.1\tpihole" in hosts.read_text(encoding="utf-8")


def test_hostname_change_validates_before_running(tmp_path: Path, fake_runner) -> None:
    with pytest.raises(ValueError):
        HostnameManager(tmp_path / "hosts", runner=fake_runner).change("bad name", old_name="x")
    assert fake_runner.calls == []


def test_hostname_change_failure_leaves_hosts(tmp_path: Path, fake_runner) -> None:
    hosts = tmp_path / "hosts"
    hosts.write_text("127.0.1.1\told\n", encoding="utf-8")
    fake_runner.returncode = 1
    fake_runner.stderr = "Access denied"
    with pytest.raises(CommandError, match="Access denied"):
        HostnameManager(hosts, runner=fake_runner).change("new", old_name="old")
    assert hosts.read_text(encoding="utf-8") == "127.0.1.1\told\n"


def test_scan_network_requires_arp_scan(monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
    monkeypatch.setattr(network.shutil, "which", lambda name: None)
    with pytest.raises(ToolMissingError) as excinfo:
        scan_network(runner=fake_runner)
    assert "apt install arp-scan" in str(excinfo.value)
    assert fake_runner.calls == []


def test_scan_network_runs_localnet(monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
    monkeypatch.setattr(network.shutil, "which", lambda name: "/usr/sbin/arp-scan")
    assert scan_network(runner=fake_runner) == 0
    assert fake_runner.commands == [["sudo", "arp-scan", "--localnet"]]


def test_hostname_change_keeps_symlinked_hosts(tmp_path: Path, fake_runner) -> None:
    real = tmp_path / "hosts.real"
    real.write_text("127.0.1.1\told\n", encoding="utf-8")
    link = tmp_path / "hosts"
    link.symlink_to(real)

    HostnameManager(link, runner=fake_runner).change("new", old_name="old")

    assert link.is_symlink()
    assert real.read_text(encoding="utf-8") == "127.0.1.1\tnew\n"


def test_block_at_top_of_file_is_moved_without_leading_blank() -> None:
    block = render_static_block(_config())
    text = f"{block}hostname\n"
    assert strip_static_block(text) == "hostname\n"
    assert apply_static_block(text, _config()) == f"hostname\n\n{block}"


def test_strip_block_only_file_is_empty() -> None:
    assert strip_static_block(render_static_block(_config())) == ""
