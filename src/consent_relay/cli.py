"""CLI entry point using Typer."""

import json

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

app = typer.Typer(
    name="consent-relay",
    help="Cookiebot -> New Relic relay for daily consent statistics.",
)
console = Console()
err_console = Console(stderr=True)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
)

logger = structlog.get_logger()


def _date_overrides(start_date: str | None, end_date: str | None, lookback_days: str | None) -> dict:
    overrides = {"startdate": start_date, "enddate": end_date, "lookback_days": lookback_days}
    return {key: value for key, value in overrides.items() if value is not None}


@app.command()
def run(
    start_date: str | None = typer.Option(None, "--start-date", help="YYYYMMDD, overrides STARTDATE"),
    end_date: str | None = typer.Option(None, "--end-date", help="YYYYMMDD, overrides ENDDATE"),
    lookback_days: str | None = typer.Option(None, "--lookback-days", help="Overrides LOOKBACK_DAYS"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print events instead of sending them"),
) -> None:
    """Fetch consent stats from Cookiebot and send them to New Relic."""
    from consent_relay.config import load_settings
    from consent_relay.relay import run_relay

    try:
        settings = load_settings(**_date_overrides(start_date, end_date, lookback_days))
        stats = run_relay(settings, dry_run=dry_run)
    except Exception as e:
        logger.exception("Relay failed", error=str(e))
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if dry_run and stats.get("events"):
        console.print_json(json.dumps(stats["events"]))

    table = Table(title="Relay Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Range", f"{stats['startdate']}..{stats['enddate']} ({stats['mode']})")
    table.add_row("Rows", str(stats["rows"]))
    table.add_row("Events sent", str(stats["events_sent"]))
    table.add_row("Status", str(stats["status"] or "-"))
    console.print(table)


@app.command()
def dates(
    start_date: str | None = typer.Option(None, "--start-date", help="YYYYMMDD, overrides STARTDATE"),
    end_date: str | None = typer.Option(None, "--end-date", help="YYYYMMDD, overrides ENDDATE"),
    lookback_days: str | None = typer.Option(None, "--lookback-days", help="Overrides LOOKBACK_DAYS"),
) -> None:
    """Show the date range a run would query."""
    from consent_relay.config import load_date_settings
    from consent_relay.dates import resolve_date_range

    try:
        settings = load_date_settings(**_date_overrides(start_date, end_date, lookback_days))
        date_range = resolve_date_range(settings.startdate, settings.enddate, settings.lookback_days)
    except Exception as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    table = Table(title="Date Range")
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Mode", style="green")
    table.add_row(date_range.startdate, date_range.enddate, date_range.mode)
    console.print(table)


if __name__ == "__main__":
    app()
