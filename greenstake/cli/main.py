"""
CLI interface for GreenStake.

Serves the REST API and runs the forecast and health checks locally.
"""

import sys
from typing import List, Optional

import typer
import uvicorn
import yaml
from rich.console import Console
from rich.table import Table

from greenstake.api.server import create_app, health_report
from greenstake.config.loader import Settings, load_settings
from greenstake.config.logging_setup import configure_logging
from greenstake.core.forecast import EnergyForecaster, ForecastSource
from greenstake.demo.seed_demo_data import DEMO_WALLET, seed_demo_data
from greenstake.sdk.inference_client import InferenceClient
from greenstake.storage.repository import RecordStore

app = typer.Typer()
console = Console()

EXIT_CODE_OK = 0
EXIT_CODE_ERROR = 1

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to a YAML settings file"
)


def _load(config: Optional[str]) -> Settings:
    """Load settings or exit with an error message."""
    try:
        return load_settings(config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)


def _parse_history(data: str) -> List[int]:
    try:
        values = [int(v.strip()) for v in data.split(",") if v.strip()]
    except ValueError:
        raise ValueError(f"historical data must be comma separated integers, got {data!r}")
    if not values:
        raise ValueError("historical data cannot be empty")
    return values


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """GreenStake CLI."""
    if ctx.invoked_subcommand is None:
        console.print("GreenStake - Use --help to see available commands")


@app.command()
def health(config: Optional[str] = ConfigOption):
    """Show the service capability map."""
    settings = _load(config)
    report = health_report(settings)

    table = Table(title="GreenStake Health")
    table.add_column("Service")
    table.add_column("Available")
    for service, available in report["services"].items():
        table.add_row(service, "[green]yes[/]" if available else "[yellow]no[/]")
    console.print(table)
    console.print(f"Status: {report['status']}")
    sys.exit(EXIT_CODE_OK)


@app.command()
def forecast(
    data: Optional[str] = typer.Option(
        None,
        "--data",
        "-d",
        help="Comma separated historical consumption in kWh"
    ),
    config: Optional[str] = ConfigOption,
):
    """
    Forecast next month's energy consumption.

    Uses the hosted model when a token is configured and falls back to a
    noisy average of the history otherwise.
    """
    settings = _load(config)
    configure_logging(settings.log_level)
    try:
        history = _parse_history(data) if data is not None else None
        forecaster = EnergyForecaster(InferenceClient.from_settings(settings))
        outcome = forecaster.forecast(history)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)

    source = "AI model" if outcome.source is ForecastSource.AI else "fallback average"
    console.print(f"\n[bold]Predicted consumption:[/bold] {outcome.predicted_consumption:,} kWh")
    console.print(f"Source: {source}\n")
    sys.exit(EXIT_CODE_OK)


@app.command()
def serve(
    config: Optional[str] = ConfigOption,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
    seed_demo: bool = typer.Option(
        False,
        "--seed-demo",
        help="Populate the store with demo records before serving"
    ),
):
    """Run the REST API server."""
    settings = _load(config)
    configure_logging(settings.log_level)

    store = RecordStore()
    if seed_demo:
        seed_demo_data(store)
        console.print(f"[green]✓[/] Demo records seeded for {DEMO_WALLET}")

    api = create_app(settings, store=store)
    uvicorn.run(
        api,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    app()
