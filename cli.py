"""
CLI entry point for the tradeperf application.
"""
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tradeperf.config import Config, load_config
from tradeperf.data import build_record, load_bars, load_trade_events
from tradeperf.evaluate import CRITERIA, build_criteria, evaluate_record

# Console is created once and passed down.
# Log to stderr to separate from potential data output to stdout.
app = typer.Typer(pretty_exceptions_show_locals=False, help="Performance analysis of backtested trading records.")
console = Console(stderr=True)


def _load_config_or_exit(config_path: Path) -> Config:
    """Helper to load config and exit on failure."""
    try:
        return load_config(config_path)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(code=1)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def evaluate(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every computation step."),
):
    """Evaluate the configured criteria on a trading record replayed from trade events."""
    _setup_logging(verbose)
    config = _load_config_or_exit(config_path)

    try:
        console.rule("[bold]1. Loading Data[/bold]")
        series = load_bars(config, console)
        events = load_trade_events(config, console)
        record = build_record(events, config, series.num_factory)
        console.print(
            f"Record '{record.name}': {record.position_count} closed positions, "
            f"open position: {'yes' if record.current_position.is_opened else 'no'}"
        )

        console.rule("[bold]2. Evaluating Criteria[/bold]")
        criteria = build_criteria(config, series)
        results = evaluate_record(record, criteria)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Evaluation Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    table = Table(title=f"Criteria for {config.run.name}")
    table.add_column("Criterion", style="cyan")
    table.add_column("Value", justify="right")
    for label, value in results.items():
        table.add_row(label, f"{value:.6g}")
    console.print(table)

    console.print("[bold green]Evaluate command finished.[/bold green]")


@app.command(name="list-criteria")
def list_criteria():
    """List the criterion names accepted in the configuration."""
    for name in sorted(CRITERIA):
        console.print(name)


if __name__ == "__main__":
    app()
