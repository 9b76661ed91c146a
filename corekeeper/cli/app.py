"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from corekeeper import __version__
from corekeeper.core import MaintenanceScheduler, SharedConfig
from corekeeper.core.periodic import BASE_TICK_SECONDS
from corekeeper.core.scheduler import ACTIVITIES
from corekeeper.exceptions import ConfigurationError
from corekeeper.models.config import SubscriptionItem
from corekeeper.services.http_service import HttpUpdateService
from corekeeper.storage.config_manager import ConfigManager
from corekeeper.storage.profile_state import ProfileStateStore
from corekeeper.utils.path import AppPaths, get_config_dir
from corekeeper.utils.structured_logger import create_structured_logger

from .formatters import (
    format_progress,
    print_config,
    print_outcomes,
    print_subscriptions,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("corekeeper")

app = typer.Typer(
    name="corekeeper",
    help=(
        "Background maintenance for a proxy client: subscriptions, geo data, core"
        " engines and GUI updates. Use 'corekeeper <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)
subs_app = typer.Typer(help="Manage subscriptions.")
app.add_typer(subs_app, name="subs")

CONFIG_FILE = get_config_dir() / "config.ini"


def _config_file(ctx: typer.Context) -> Path:
    return (ctx.obj or {}).get("config_file", CONFIG_FILE)


def _print_progress(success: bool, message: str) -> None:
    console.print(format_progress(success, message))


def _load(ctx: typer.Context) -> tuple[ConfigManager, SharedConfig, AppPaths]:
    config_file = _config_file(ctx)
    config_manager = ConfigManager(config_file)
    config = config_manager.load_config()
    paths = AppPaths.from_base(config.base_dir or config_file.parent)
    paths.ensure()
    return config_manager, SharedConfig(config, config_manager), paths


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config_file: Path = typer.Option(
        CONFIG_FILE, "--config", "-c", help="Path to the configuration file."
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """corekeeper maintenance CLI"""
    if version:
        console.print(f"[bold]corekeeper[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("corekeeper").setLevel(log_level)
    ctx.obj = {"config_file": config_file}

    if show_config:
        config = ConfigManager(config_file).load_config()
        print_config(config_file, config)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    ctx: typer.Context,
    base_dir: str = typer.Option(
        "", "--base-dir", help="Root for bin/, logs and temp files (default: config dir)."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Create a configuration file with default settings."""
    config_file = _config_file(ctx)
    if (
        config_file.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    config = ConfigManager(config_file).save_new_config(base_dir)
    AppPaths.from_base(config.base_dir or config_file.parent).ensure()
    console.print(f"\n[bold green]✓ Configuration saved to '{config_file}'[/bold green]")
    console.print("Start maintenance with: [cyan]corekeeper run[/cyan]")


@app.command()
def run(
    ctx: typer.Context,
    tick: float = typer.Option(
        BASE_TICK_SECONDS, "--tick", help="Base tick in seconds.", min=1
    ),
    json_log: bool = typer.Option(
        False, "--json-log", help="Also write JSONL event logs to the log directory."
    ),
):
    """Run all maintenance activities until interrupted."""
    _, shared, paths = _load(ctx)
    base_logger, events = create_structured_logger(paths.log_dir, enable_json=json_log)

    async def _run_async():
        service = HttpUpdateService(paths)
        scheduler = MaintenanceScheduler(
            shared,
            service,
            paths,
            on_progress=_print_progress,
            profile_state=ProfileStateStore(paths.base_dir),
            events=events,
            base_tick=tick,
        )
        try:
            async with scheduler:
                console.print(
                    f"[cyan]Maintenance running (tick {tick:g}s). "
                    "Press Ctrl+C to stop.[/cyan]"
                )
                await asyncio.Event().wait()
        finally:
            await service.close()
            await shared.save()

    try:
        asyncio.run(_run_async())
    finally:
        base_logger.close()


@app.command()
def once(
    ctx: typer.Context,
    activity: str = typer.Argument(..., help=f"One of: {', '.join(ACTIVITIES)}."),
):
    """Run one maintenance activity now, ignoring its cadence."""
    if activity not in ACTIVITIES:
        console.print(f"[red]✗ Unknown activity '{activity}'.[/red]")
        raise typer.Exit(code=1)
    _, shared, paths = _load(ctx)

    async def _once_async():
        service = HttpUpdateService(paths)
        scheduler = MaintenanceScheduler(
            shared,
            service,
            paths,
            on_progress=_print_progress,
            profile_state=ProfileStateStore(paths.base_dir),
        )
        try:
            return await scheduler.run_activity(activity)
        finally:
            await service.close()

    result = asyncio.run(_once_async())
    if isinstance(result, list):
        print_outcomes(result)
    elif isinstance(result, int):
        console.print(f"[green]✓ Housekeeping removed {result} expired files.[/green]")


@app.command("set-interval")
def set_interval(
    ctx: typer.Context,
    geo: Optional[int] = typer.Option(None, "--geo", min=0, help="Geo update hours."),
    core: Optional[int] = typer.Option(
        None, "--core", min=0, help="Core and GUI update hours."
    ),
):
    """Change update cadences. 0 disables an activity."""
    if geo is None and core is None:
        raise typer.BadParameter("Nothing to change: pass --geo and/or --core.")
    _, shared, _ = _load(ctx)
    asyncio.run(shared.set_intervals(geo_hours=geo, core_hours=core))
    console.print("[green]✓ Intervals updated.[/green]")


@subs_app.command("add")
def subs_add(
    ctx: typer.Context,
    sub_id: str = typer.Argument(..., help="Unique subscription id."),
    url: str = typer.Argument(..., help="Subscription URL."),
    interval: int = typer.Option(
        0, "--interval", "-i", min=0, help="Auto-update interval in minutes (0 = off)."
    ),
    remarks: str = typer.Option("", "--remarks", "-r"),
):
    """Add or replace a subscription."""
    _, shared, _ = _load(ctx)
    try:
        item = SubscriptionItem(
            id=sub_id, url=url, remarks=remarks, auto_update_interval_minutes=interval
        )
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    asyncio.run(shared.upsert_subscription(item))
    console.print(f"[green]✓ Subscription '{sub_id}' saved.[/green]")


@subs_app.command("list")
def subs_list(ctx: typer.Context):
    """List configured subscriptions."""
    _, shared, _ = _load(ctx)
    print_subscriptions(shared.snapshot().subscriptions)
