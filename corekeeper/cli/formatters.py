"""
Rich formatters for configuration, outcomes and errors.
"""

from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from corekeeper.exceptions import ConfigurationError, CorekeeperError
from corekeeper.models.config import AppConfig, SubscriptionItem
from corekeeper.models.results import (
    ArtifactOutcome,
    ArtifactStatus,
    SubscriptionOutcome,
)


def format_progress(success: bool, message: str) -> str:
    """Formats one progress callback message for console output."""
    if success:
        return f"[green]✓[/green] {message}"
    return f"[yellow]•[/yellow] {message}"


def format_error(error: Exception) -> str:
    """Formats an error with a short hint where one applies."""
    text = f"[bold red]✗ Error:[/bold red] {error}"
    if isinstance(error, ConfigurationError):
        text += "\n[dim]Hint: run [cyan]corekeeper init[/cyan] to create a config file.[/dim]"
    elif not isinstance(error, CorekeeperError):
        text += "\n[dim]Run with -vv for the full traceback.[/dim]"
    return text


def _format_interval(hours: int) -> str:
    return "[red]disabled[/red]" if hours == 0 else f"every {hours}h"


def print_config(config_path: Path, config: AppConfig):
    """Displays the current configuration."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Base Dir:", config.base_dir or "[dim](config dir)[/dim]")
    table.add_row("Geo Updates:", _format_interval(config.gui.auto_update_interval_hours))
    table.add_row(
        "Core/GUI Updates:", _format_interval(config.gui.auto_update_core_interval_hours)
    )
    for key, value in config.sources.model_dump().items():
        table.add_row(f"{key}:", f"[dim]{value}[/dim]")
    table.add_row("Subscriptions:", str(len(config.subscriptions)))

    console.print(
        Panel(
            table,
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_subscriptions(subscriptions: list[SubscriptionItem]):
    console = Console()
    if not subscriptions:
        console.print("[dim]No subscriptions configured.[/dim]")
        return
    table = Table(title="Subscriptions", border_style="cyan")
    table.add_column("ID", style="bold")
    table.add_column("Remarks")
    table.add_column("Interval")
    table.add_column("Last Update")
    for item in subscriptions:
        interval = (
            f"{item.auto_update_interval_minutes} min"
            if item.auto_update_interval_minutes
            else "[red]off[/red]"
        )
        last = (
            datetime.fromtimestamp(item.update_time).strftime("%Y-%m-%d %H:%M")
            if item.update_time
            else "[dim]never[/dim]"
        )
        table.add_row(item.id, item.remarks, interval, last)
    console.print(table)


def print_outcomes(outcomes: list[SubscriptionOutcome] | list[ArtifactOutcome]):
    """Displays per-item outcomes from a manual run."""
    console = Console()
    if not outcomes:
        console.print("[dim]Nothing to do.[/dim]")
        return
    for outcome in outcomes:
        if isinstance(outcome, SubscriptionOutcome):
            mark = "[green]✓[/green]" if outcome.success else "[red]✗[/red]"
            console.print(f"{mark} {outcome.sub_id}: {outcome.message}")
        else:
            mark = {
                ArtifactStatus.INSTALLED: "[green]✓[/green]",
                ArtifactStatus.SKIPPED: "[dim]-[/dim]",
                ArtifactStatus.FAILED: "[red]✗[/red]",
            }[outcome.status]
            console.print(f"{mark} {Path(outcome.file_path).name}: {outcome.message}")
