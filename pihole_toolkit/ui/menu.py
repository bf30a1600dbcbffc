"""Interactive Rich menu wrapping the toolkit operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Union

import structlog
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from ..audit import ListStore, is_valid_adlist_url, run_audit
from ..config import StaticIPConfig, format_validation_error
from ..errors import ToolkitError
from ..infra.pihole_cli import CommandResult
from ..logging_conf import tail_log
from ..system import collect_health, is_valid_domain, is_valid_hostname, render_static_block, scan_network
from .progress import ProbeProgress
from .tables import render_audit_summary, render_health_table, render_top_table

if TYPE_CHECKING:
    from ..app import AppState

AskFn = Callable[..., str]
ConfirmFn = Callable[..., bool]


@dataclass
class MenuAction:
    """A selectable menu entry bound to a handler."""

    name: str
    description: str
    handler: Callable[[], Any]
    dangerous: bool = False


@dataclass
class MenuCategory:
    title: str
    description: str
    actions: list[Union[MenuAction, "MenuCategory"]] = field(default_factory=list)


MenuEntry = Union[MenuAction, MenuCategory]


class ToolkitMenu:
    """Numbered Rich menu: categories of actions, ``b`` for back, ``q`` to quit."""

    PAUSE_PROMPT = "Press Enter to continue"

    def __init__(
        self,
        state: "AppState",
        console: Console | None = None,
        ask: AskFn | None = None,
        confirm: ConfirmFn | None = None,
    ) -> None:
        self.state = state
        self.console = console or Console()
        self._ask = ask or self._rich_ask
        self._confirm = confirm or self._rich_confirm
        self.logger = structlog.get_logger("pihole_toolkit").bind(component="menu")
        self.entries: list[MenuEntry] = self._build_entries()

    # ------------------------------------------------------------------
    # Prompt plumbing
    # ------------------------------------------------------------------
    def _rich_ask(self, prompt: str, default: str = "") -> str:
        return Prompt.ask(prompt, console=self.console, default=default, show_default=bool(default))

    def _rich_confirm(self, prompt: str, default: bool = False) -> bool:
        return Confirm.ask(prompt, console=self.console, default=default)

    def ask(self, prompt: str, default: str = "") -> str:
        return self._ask(prompt, default=default).strip()

    def confirm(self, prompt: str, default: bool = False) -> bool:
        return bool(self._confirm(prompt, default=default))

    def pause(self) -> None:
        try:
            self._ask(f"\n[dim]{self.PAUSE_PROMPT}[/dim]", default="")
        except (KeyboardInterrupt, EOFError):
            self.console.print()

    def info(self, message: str) -> None:
        self.console.print(message, markup=False, highlight=False)

    # ------------------------------------------------------------------
    # Menu structure
    # ------------------------------------------------------------------
    def _build_entries(self) -> list[MenuEntry]:
        viewable = [
            MenuAction(label, str(path), self._pager_action(Path(path)))
            for label, path in self.state.config.paths.viewable_files.items()
        ]
        return [
            MenuAction("Health Dashboard", "Service, blocking, gravity age and vitals", self.show_dashboard),
            MenuAction("Update Gravity", "Rebuild the block database from all adlists", self.update_gravity),
            MenuCategory(
                "Manage Lists",
                "Allow/deny domains and maintain adlists",
                [
                    MenuAction("Allow-list a domain", "pihole -w", self.allow_domain),
                    MenuAction("Deny-list a domain", "pihole -b", self.deny_domain),
                    MenuAction("Add an adlist URL", "Append a list source to the adlist store", self.add_adlist),
                    MenuAction("Search adlists for a domain", "pihole -q", self.query_adlists),
                    MenuAction("Audit adlists", "Remove duplicates and probe every list source", self.audit_adlists),
                ],
            ),
            MenuCategory(
                "Network & Logs",
                "Query log, log files, top talkers and LAN scan",
                [
                    MenuAction("Live query log", "pihole -t (Ctrl+C to return)", self.live_log),
                    MenuCategory("View log & config files", "Open a file in the pager", viewable),
                    MenuAction("Top clients", "Clients with the most queries", self.top_clients),
                    MenuAction("Top blocked domains", "Most frequently blocked domains", self.top_blocked),
                    MenuAction("Scan network", "arp-scan --localnet", self.scan_lan),
                    MenuAction("View toolkit log", "Recent entries of this tool's log", self.view_toolkit_log),
                ],
            ),
            MenuCategory(
                "Service Control",
                "Enable, pause or restart blocking",
                [
                    MenuAction("Enable blocking", "pihole enable", self.enable_blocking),
                    MenuAction("Disable blocking for 30 seconds", "pihole disable 30s", lambda: self.disable_blocking("30s")),
                    MenuAction("Disable blocking for 5 minutes", "pihole disable 5m", lambda: self.disable_blocking("5m")),
                    MenuAction("Restart DNS resolver", "pihole restartdns", self.restart_dns, dangerous=True),
                ],
            ),
            MenuCategory(
                "System & Maintenance",
                "Updates, hostname, static IP, backups and diagnostics",
                [
                    MenuAction("Update Pi-hole", "pihole -up", self.update_software, dangerous=True),
                    MenuAction("Change hostname", "hostnamectl and /etc/hosts", self.change_hostname),
                    MenuAction("Configure static IP", "Write the dhcpcd static address block", self.configure_static_ip),
                    MenuAction("Teleporter backup", "Export settings to an archive", self.teleporter_backup),
                    MenuAction("Teleporter restore", "Import settings from an archive", self.teleporter_restore),
                    MenuAction("Debug session", "pihole -d", self.debug_session),
                ],
            ),
        ]

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def run(self) -> None:
        while True:
            self.console.print(Panel.fit("[bold]Pi-hole Toolkit[/bold]", border_style="cyan"))
            self._print_entries(self.entries)
            self.console.print("[cyan]q.[/cyan] Quit\n")
            try:
                choice = self.ask("Select option").lower()
            except (KeyboardInterrupt, EOFError):
                self.console.print("\n[yellow]Exiting.[/yellow]")
                return
            if choice == "q":
                self.console.print("[yellow]Exiting.[/yellow]")
                return
            entry = self._select(self.entries, choice)
            if entry is not None:
                self._dispatch(entry)

    def _run_category(self, category: MenuCategory) -> None:
        while True:
            self.console.print(
                Panel.fit(f"[bold]{category.title}[/bold]\n{category.description}", border_style="blue")
            )
            self._print_entries(category.actions)
            self.console.print("[cyan]b.[/cyan] Back\n")
            try:
                choice = self.ask("Select option", default="b").lower()
            except (KeyboardInterrupt, EOFError):
                self.console.print()
                return
            if choice == "b":
                return
            entry = self._select(category.actions, choice)
            if entry is not None:
                self._dispatch(entry)

    def _print_entries(self, entries: list[MenuEntry]) -> None:
        for index, entry in enumerate(entries, start=1):
            title = entry.name if isinstance(entry, MenuAction) else f"{entry.title} ›"
            self.console.print(f"[cyan]{index}.[/cyan] {title}")
            self.console.print(f"   [dim]{entry.description}[/dim]", markup=True, highlight=False)

    def _select(self, entries: list[MenuEntry], choice: str) -> MenuEntry | None:
        if choice.isdigit() and 1 <= int(choice) <= len(entries):
            return entries[int(choice) - 1]
        self.console.print(f"[red]Invalid choice: {choice or '(empty)'}[/red]")
        return None

    def _dispatch(self, entry: MenuEntry) -> None:
        if isinstance(entry, MenuCategory):
            self._run_category(entry)
        else:
            self.execute(entry)

    def execute(self, action: MenuAction) -> None:
        """Run one action; failures are reported and the menu keeps going."""

        try:
            if action.dangerous and not self.confirm(f"{action.name}: continue?", default=False):
                self.console.print("[yellow]Cancelled.[/yellow]")
                return
            action.handler()
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Interrupted. Returning to menu.[/yellow]")
        except ToolkitError as exc:
            self.logger.warning("menu_action_error", action=action.name, error=str(exc))
            self.console.print(f"[red]{exc}[/red]", highlight=False)
        except ValidationError as exc:
            self.console.print(f"[red]{format_validation_error(exc)}[/red]", highlight=False)
        except ValueError as exc:
            self.console.print(f"[red]{exc}[/red]", highlight=False)
        except Exception as exc:  # noqa: BLE001
            self.logger.exception("menu_action_crashed", action=action.name)
            self.console.print(f"[red]Unexpected error: {exc}[/red]", highlight=False)
        finally:
            self.pause()

    # ------------------------------------------------------------------
    # Dashboard & gravity
    # ------------------------------------------------------------------
    def show_dashboard(self) -> None:
        checks = collect_health(
            self.state.cli, self.state.config.paths.gravity_db, query_log=self.state.query_log
        )
        self.console.print(render_health_table(checks))

    def update_gravity(self) -> None:
        code = self.state.cli.update_gravity()
        if code == 0:
            self.console.print("[green]Gravity update complete.[/green]")
        else:
            self.console.print(f"[yellow]Gravity update exited with code {code}.[/yellow]")

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------
    def _ask_domain(self, prompt: str) -> str | None:
        domain = self.ask(prompt)
        if not domain:
            self.console.print("[yellow]Cancelled.[/yellow]")
            return None
        if not is_valid_domain(domain):
            raise ValueError(f"Invalid domain: {domain}")
        return domain

    def _show_result(self, result: CommandResult, success: str) -> None:
        if result.output:
            self.info(result.output)
        self.console.print(f"[green]{success}[/green]", highlight=False)

    def allow_domain(self) -> None:
        domain = self._ask_domain("Domain to allow-list")
        if domain:
            self._show_result(self.state.cli.allow(domain), f"{domain} allow-listed.")

    def deny_domain(self) -> None:
        domain = self._ask_domain("Domain to deny-list")
        if domain:
            self._show_result(self.state.cli.deny(domain), f"{domain} deny-listed.")

    def query_adlists(self) -> None:
        domain = self._ask_domain("Domain to search for")
        if domain:
            result = self.state.cli.query_adlists(domain)
            self.info(result.output or "No matches.")

    def add_adlist(self) -> None:
        url = self.ask("Adlist URL")
        if not url:
            self.console.print("[yellow]Cancelled.[/yellow]")
            return
        if not is_valid_adlist_url(url):
            raise ValueError(f"Not an http(s) URL: {url}")
        audit_config = self.state.config.audit
        ListStore(audit_config.adlists_path, backup_suffix=audit_config.backup_suffix).append(url)
        self.logger.info("adlist_added", url=url)
        self.console.print(f"[green]Added {url}.[/green]", highlight=False)
        self.console.print("Run 'Update Gravity' to apply the new list.", style="dim")

    def audit_adlists(self) -> None:
        progress = ProbeProgress(console=self.console)
        try:
            report = run_audit(
                self.state.config.audit,
                confirm=lambda prompt: self.confirm(prompt, default=False),
                notify=self.info,
                progress=progress,
            )
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Audit interrupted; partial results discarded.[/yellow]")
            return
        if report.succeeded:
            self.console.print(render_audit_summary(report))

    # ------------------------------------------------------------------
    # Network & logs
    # ------------------------------------------------------------------
    def live_log(self) -> None:
        self.console.print("[dim]Streaming the query log; press Ctrl+C to return.[/dim]")
        try:
            self.state.cli.tail_log()
        except KeyboardInterrupt:
            self.console.print()

    def _pager_action(self, path: Path) -> Callable[[], None]:
        def _show() -> None:
            self.view_file(path)

        return _show

    def view_file(self, path: Path) -> None:
        if not path.exists():
            self.console.print(f"[yellow]File not found: {path}[/yellow]", highlight=False)
            return
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ToolkitError(f"Cannot read {path}: {exc.strerror or exc}") from exc
        with self.console.pager():
            self.console.print(text, markup=False, highlight=False)

    def top_clients(self) -> None:
        rows = self.state.query_log.top_clients(self.state.config.top_limit)
        self.console.print(render_top_table("Top clients", "Client", rows))

    def top_blocked(self) -> None:
        rows = self.state.query_log.top_blocked_domains(self.state.config.top_limit)
        self.console.print(render_top_table("Top blocked domains", "Domain", rows))

    def scan_lan(self) -> None:
        scan_network(use_sudo=self.state.config.commands.use_sudo)

    def view_toolkit_log(self, line_count: int = 50) -> None:
        lines = tail_log(self.state.log_path, line_count)
        if not lines:
            self.console.print("No log entries yet.", style="dim")
            return
        self.info("".join(lines).rstrip("\n"))

    # ------------------------------------------------------------------
    # Service control
    # ------------------------------------------------------------------
    def enable_blocking(self) -> None:
        self._show_result(self.state.cli.enable(), "Blocking enabled.")

    def disable_blocking(self, duration: str) -> None:
        self._show_result(self.state.cli.disable(duration), f"Blocking disabled for {duration}.")

    def restart_dns(self) -> None:
        self._show_result(self.state.cli.restart_dns(), "DNS resolver restarted.")

    # ------------------------------------------------------------------
    # System & maintenance
    # ------------------------------------------------------------------
    def update_software(self) -> None:
        self.state.cli.update_software()

    def debug_session(self) -> None:
        self.state.cli.debug()

    def change_hostname(self) -> None:
        current = self.state.hostnames.current()
        self.console.print(f"Current hostname: [bold]{current}[/bold]")
        new_name = self.ask("New hostname (leave empty to cancel)")
        if not new_name:
            self.console.print("[yellow]Cancelled.[/yellow]")
            return
        if not is_valid_hostname(new_name):
            raise ValueError(f"Invalid hostname: {new_name}")
        self.console.print(
            f"[red]WARNING:[/red] This will change the hostname from '{current}' to '{new_name}'.",
            highlight=False,
        )
        if not self.confirm("Continue?", default=False):
            self.console.print("[yellow]Cancelled.[/yellow]")
            return
        self.state.hostnames.change(new_name, old_name=current)
        self.console.print(f"[green]Hostname changed to {new_name}.[/green]")
        self.console.print("Reboot, then run 'pihole -r' and choose Repair.", style="dim")

    def configure_static_ip(self) -> None:
        writer = self.state.static_ip
        existing = writer.current()
        if existing is not None:
            self.console.print("Current managed block:", style="dim")
            self.info(render_static_block(existing).rstrip("\n"))
        config = StaticIPConfig(
            interface=self.ask("Interface", default=existing.interface if existing else "eth0"),
            ip_address=self.ask("Static address (CIDR, e.g. 192.168.1.2/24)"),
            routers=self.ask("Router / gateway address"),
            dns_servers=self.ask("DNS servers (space or comma separated)", default="127.0.0.1"),
        )
        self.console.print(f"Block to write to {writer.conf_path}:", style="dim", highlight=False)
        self.info(writer.preview(config).rstrip("\n"))
        if not self.confirm("Write this configuration?", default=False):
            self.console.print("[yellow]Cancelled.[/yellow]")
            return
        result = writer.apply(config)
        if not result.changed:
            self.console.print("Static IP already configured; no change.", style="dim")
            return
        if result.backup_path is not None:
            self.console.print(f"Backup saved to {result.backup_path}.", style="dim", highlight=False)
        self.console.print("[green]Static IP written. Reboot to apply.[/green]")

    def teleporter_backup(self) -> None:
        directory = self.state.config.teleporter_dir.expanduser()
        archive = self.state.cli.teleporter_backup(directory)
        self.console.print(f"[green]Backup written to {archive}.[/green]", highlight=False)

    def teleporter_restore(self) -> None:
        raw = self.ask("Path to teleporter archive")
        if not raw:
            self.console.print("[yellow]Cancelled.[/yellow]")
            return
        archive = Path(raw).expanduser()
        if not archive.is_file():
            raise ToolkitError(f"Backup file not found at '{archive}'")
        self.console.print("[red]WARNING:[/red] This will overwrite your current Pi-hole settings.")
        if not self.confirm("Restore from this archive?", default=False):
            self.console.print("[yellow]Cancelled.[/yellow]")
            return
        self._show_result(self.state.cli.teleporter_restore(archive), "Settings restored.")


__all__ = ["MenuAction", "MenuCategory", "ToolkitMenu"]
