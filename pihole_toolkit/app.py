"""Typer CLI entrypoint for the Pi-hole toolkit."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console

from .audit import run_audit
from .config import ConfigRepository, StaticIPConfig, ToolkitConfig, format_validation_error
from .errors import ToolkitError
from .infra import PiholeCLI, QueryLogDatabase
from .logging_conf import LOG_FILES, configure_logging, tail_log, toolkit_log_path
from .system import HostnameManager, StaticIPWriter, collect_health
from .ui import (
    ProbeProgress,
    ProgressActivity,
    ToolkitMenu,
    render_audit_summary,
    render_health_table,
    render_top_table,
)

app = typer.Typer(
    help="Pi-hole administration toolkit",
    rich_markup_mode=None,
)
log_app = typer.Typer(name="log", help="Toolkit log commands", no_args_is_help=True, rich_markup_mode=None)
config_app = typer.Typer(name="config", help="Configuration commands", no_args_is_help=True, rich_markup_mode=None)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: ToolkitConfig
    cli: PiholeCLI
    query_log: QueryLogDatabase
    static_ip: StaticIPWriter
    hostnames: HostnameManager
    log_path: Path


def build_state(verbose: bool, config_path: Optional[Path] = None) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository(config_path=config_path)
    config = repository.load_config()
    commands = config.commands
    return AppState(
        repository=repository,
        config=config,
        cli=PiholeCLI(commands),
        query_log=QueryLogDatabase(config.paths.ftl_db),
        static_ip=StaticIPWriter(config.paths.dhcpcd_conf, backup_suffix=config.audit.backup_suffix),
        hostnames=HostnameManager(config.paths.hosts_file, use_sudo=commands.use_sudo),
        log_path=toolkit_log_path(),
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return sys.stdout.isatty()


def _fail(message: str) -> NoReturn:
    console.print(message, style="red", highlight=False)
    raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging on the console.", is_flag=True),
    config: Optional[Path] = typer.Option(None, "--config", help="Use this configuration file."),
) -> None:
    try:
        ctx.obj = build_state(verbose, config)
    except ValidationError as exc:
        _fail(f"Invalid configuration:\n{format_validation_error(exc)}")
    except (ValueError, OSError, yaml.YAMLError) as exc:
        _fail(f"Cannot load configuration: {exc}")
    if ctx.invoked_subcommand is None:
        ToolkitMenu(ctx.obj, console=console).run()


@app.command("menu", help="Open the interactive menu.")
def menu(ctx: typer.Context) -> None:
    ToolkitMenu(_get_state(ctx), console=console).run()


@app.command("audit", help="Remove duplicate adlists and probe every list source.")
def audit(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Rewrite without asking when duplicates are found.", is_flag=True),
    no_rewrite: bool = typer.Option(False, "--no-rewrite", help="Never rewrite the adlist store.", is_flag=True),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Concurrent probes (default from config)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-probe timeout in seconds."),
) -> None:
    if yes and no_rewrite:
        raise typer.BadParameter("--yes and --no-rewrite are mutually exclusive.")
    if timeout is not None and timeout <= 0:
        raise typer.BadParameter("--timeout must be greater than 0.", param_hint="--timeout")
    state = _get_state(ctx)

    def _confirm(prompt: str) -> bool:
        if yes:
            return True
        if no_rewrite:
            return False
        return typer.confirm(prompt, default=False)

    try:
        report = run_audit(
            state.config.audit,
            confirm=_confirm,
            notify=lambda message: console.print(message, markup=False, highlight=False),
            progress=ProbeProgress(enabled=_progress_default_enabled(), console=console),
            workers=workers,
            timeout=timeout,
        )
    except KeyboardInterrupt:
        console.print("Audit interrupted; partial results discarded.", style="yellow")
        raise typer.Exit(code=130)
    if not report.succeeded:
        raise typer.Exit(code=1)
    console.print(render_audit_summary(report))


@app.command("status", help="Show the health dashboard.")
def status(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    with ProgressActivity(enabled=_progress_default_enabled(), console=console) as activity:
        activity.start("Checking Pi-hole status…")
        checks = collect_health(state.cli, state.config.paths.gravity_db, query_log=state.query_log)
    console.print(render_health_table(checks))


@app.command("gravity", help="Update gravity (pihole -g).")
def gravity(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        code = state.cli.update_gravity()
    except ToolkitError as exc:
        _fail(str(exc))
    if code != 0:
        console.print(f"Gravity update exited with code {code}.", style="yellow")
        raise typer.Exit(code=code)
    console.print("Gravity update complete.", style="green")


@app.command("top", help="Top clients and blocked domains from the query log.")
def top(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Rows per table (default from config)."),
) -> None:
    state = _get_state(ctx)
    effective = limit or state.config.top_limit
    try:
        clients = state.query_log.top_clients(effective)
        blocked = state.query_log.top_blocked_domains(effective)
    except ToolkitError as exc:
        _fail(str(exc))
    console.print(render_top_table("Top clients", "Client", clients))
    console.print(render_top_table("Top blocked domains", "Domain", blocked))


@app.command("static-ip", help="Write the static address block to dhcpcd.conf.")
def static_ip(
    ctx: typer.Context,
    interface: str = typer.Option(..., "--interface", help="Network interface, e.g. eth0."),
    address: str = typer.Option(..., "--address", help="Address in CIDR form, e.g. 192.168.1.2/24."),
    router: str = typer.Option(..., "--router", help="Gateway address."),
    dns: List[str] = typer.Option(..., "--dns", help="DNS server (repeatable)."),
    yes: bool = typer.Option(False, "--yes", help="Write without asking.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    try:
        config = StaticIPConfig(interface=interface, ip_address=address, routers=router, dns_servers=dns)
    except ValidationError as exc:
        _fail(format_validation_error(exc))
    writer = state.static_ip
    console.print(f"Block to write to {writer.conf_path}:", style="dim", highlight=False)
    console.print(writer.preview(config).rstrip("\n"), markup=False, highlight=False)
    if not yes and not typer.confirm("Write this configuration?", default=False):
        console.print("Cancelled.", style="yellow")
        raise typer.Exit(code=0)
    try:
        result = writer.apply(config)
    except ToolkitError as exc:
        _fail(str(exc))
    if not result.changed:
        console.print("Static IP already configured; no change.", style="dim")
        return
    if result.backup_path is not None:
        console.print(f"Backup saved to {result.backup_path}.", style="dim", highlight=False)
    console.print("Static IP written. Reboot to apply.", style="green")


@log_app.command("show", help="Show the most recent toolkit log lines.")
def log_show(
    ctx: typer.Context,
    tail: int = typer.Option(100, "--tail", min=1, help="Number of lines to show."),
    log_name: str = typer.Option("toolkit", "--file", help=f"Which log: {', '.join(LOG_FILES)}."),
) -> None:
    if log_name not in LOG_FILES:
        raise typer.BadParameter(f"choose from {', '.join(LOG_FILES)}", param_hint="--file")
    state = _get_state(ctx)
    path = state.log_path.with_name(LOG_FILES[log_name])
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{path} · last {len(lines)} lines", style="cyan", highlight=False)
    console.print("".join(lines).rstrip("\n"), markup=False, highlight=False)


@config_app.command("show", help="Print the configuration path and effective settings.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    console.print(f"Config file: {state.repository.config_path}", style="cyan", highlight=False)
    console.print(
        yaml.safe_dump(state.config.model_dump(mode="json"), allow_unicode=True, sort_keys=False).rstrip("\n"),
        markup=False,
        highlight=False,
    )


app.add_typer(log_app, name="log", help="View the toolkit log")
app.add_typer(config_app, name="config", help="Inspect the configuration")


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
