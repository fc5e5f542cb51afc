"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.registry import build_default_registry, init_registry
from ..config import AppConfig, get_default_config_path
from ..domain.models import DaySlots, Modality, Slot
from ..services.availability import AvailabilityAggregator

app = typer.Typer(
    name="clinicslots",
    help="Find the next available appointment across clinic booking systems",
    add_completion=False
)

console = Console()

# Times listed per modality cell in the calendar view
MAX_TIMES_PER_CELL = 6


ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use generated availability instead of calling provider APIs.")
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug logging, including provider failures.")
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load configuration or exit with an error message."""
    config_path = config_file or get_default_config_path()
    try:
        return AppConfig.load_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _build_aggregator(config: AppConfig, mock: bool) -> AvailabilityAggregator:
    init_registry(build_default_registry(config, mock=mock))
    return AvailabilityAggregator()


def _format_slot_time(slot: Slot, tz: str) -> str:
    return slot.start_time.in_timezone(tz).format("ddd DD MMM YYYY HH:mm")


def _format_times(slots: List[Slot], tz: str) -> str:
    if not slots:
        return "[dim]-[/dim]"
    times = [slot.start_time.in_timezone(tz).format("HH:mm") for slot in slots[:MAX_TIMES_PER_CELL]]
    more = len(slots) - MAX_TIMES_PER_CELL
    suffix = f" [dim](+{more})[/dim]" if more > 0 else ""
    return f"[bold]{len(slots)}[/bold]: " + ", ".join(times) + suffix


@app.command("next")
def next_slot(
    clinics: Annotated[Optional[List[str]], typer.Argument(help="Clinic ids or names. Defaults to all configured clinics.")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show the next available slot for each clinic.

    Examples:

        clinicslots next
        clinicslots next downtown-walkin --verbose
        clinicslots next --mock
    """
    _configure_logging(verbose)
    config = _load_config(config_file)
    tz = config.defaults.timezone

    try:
        selected = config.resolve_clinics(clinics or [])
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not selected:
        console.print("[yellow]No clinics defined in the config file.[/yellow]")
        return

    if mock:
        console.print("[yellow]⚠  MOCK MODE: using generated availability[/yellow]\n")

    aggregator = _build_aggregator(config, mock)
    booking_configs = [clinic.to_booking_config(config.defaults) for clinic in selected]

    with console.status("Checking availability..."):
        results = asyncio.run(aggregator.get_next_available_slots(booking_configs))

    table = Table(title="Next available appointment", show_header=True, header_style="bold cyan")
    table.add_column("Clinic", style="bold yellow")
    table.add_column("Provider", style="dim")
    table.add_column("Next slot")
    table.add_column("Type")
    table.add_column("Booking link", style="dim", overflow="fold")

    for clinic in selected:
        slot = results.get(clinic.id)
        if slot is None:
            table.add_row(clinic.display_name(), clinic.provider_name or "-", "[dim]none[/dim]", "", "")
            continue
        table.add_row(
            clinic.display_name(),
            clinic.provider_name or "-",
            f"[green]{_format_slot_time(slot, tz)}[/green]",
            slot.modality.value,
            slot.booking_url or ""
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def calendar(
    clinic: Annotated[str, typer.Argument(help="Clinic id or name")],
    start: Annotated[Optional[str], typer.Option("--start", help="First day (YYYY-MM-DD). Defaults to today.")] = None,
    days: Annotated[Optional[int], typer.Option("--days", "-d", help="Number of days to show")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show available slots per day and appointment type.

    Examples:

        clinicslots calendar downtown-walkin
        clinicslots calendar downtown-walkin --start 2025-11-03 --days 14
    """
    _configure_logging(verbose)
    config = _load_config(config_file)
    tz = config.defaults.timezone

    entry = config.find_clinic(clinic)
    if entry is None:
        console.print(f"[bold red]Error:[/bold red] Unknown clinic: '{clinic}'")
        raise typer.Exit(1)

    if start:
        try:
            window_start = pendulum.from_format(start, "YYYY-MM-DD", tz=tz).date()
        except ValueError as e:
            console.print(f"[red]Could not parse start date: {e}[/red]")
            raise typer.Exit(1)
    else:
        window_start = pendulum.now(tz).date()

    window_days = days if days is not None else config.defaults.calendar_days
    if window_days <= 0:
        console.print("[red]--days must be greater than zero[/red]")
        raise typer.Exit(1)

    aggregator = _build_aggregator(config, mock)

    with console.status("Loading available slots..."):
        calendar_slots = asyncio.run(
            aggregator.get_slots_for_calendar_window(
                entry.to_booking_config(config.defaults),
                window_start,
                window_days
            )
        )

    end_day = window_start.add(days=window_days - 1)
    console.print(
        f"\n[bold cyan]{entry.display_name()}[/bold cyan]: "
        f"{window_start.format('ddd DD MMM')} - {end_day.format('ddd DD MMM YYYY')}\n"
    )

    if not calendar_slots:
        console.print("[yellow]⚠ No available slots in this period.[/yellow]\n")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold")
    for modality in Modality:
        table.add_column(modality.value)

    for date_str, day_slots in calendar_slots.items():
        table.add_row(
            pendulum.parse(date_str).format("ddd DD MMM"),
            *(_format_times(day_slots.for_modality(modality), tz) for modality in Modality)
        )

    console.print(table)
    console.print(f"\n[dim]{_total(calendar_slots.values())} slot(s) across {len(calendar_slots)} day(s).[/dim]\n")


def _total(days: Iterable[DaySlots]) -> int:
    return sum(day.total for day in days)


@app.command()
def list_clinics(config_file: ConfigOption = None):
    """
    List all configured clinics.
    """
    config = _load_config(config_file)

    if not config.clinics:
        console.print("[yellow]No clinics defined in the config file.[/yellow]")
        return

    table = Table(title="Configured clinics", show_header=True, header_style="bold cyan")
    table.add_column("Id", style="bold yellow")
    table.add_column("Name")
    table.add_column("Provider", style="dim")
    table.add_column("Account", style="dim")

    for clinic in config.clinics:
        table.add_row(
            clinic.id,
            clinic.display_name(),
            clinic.provider_name or "-",
            clinic.provider_account_id or "-"
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def providers(config_file: ConfigOption = None, mock: MockOption = False):
    """
    List the booking providers this installation can query.
    """
    config = _load_config(config_file)
    registry = build_default_registry(config, mock=mock)

    console.print("\n[bold]Registered providers:[/bold]")
    for name in registry.provider_names():
        console.print(f"  • {name}")
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]clinicslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
