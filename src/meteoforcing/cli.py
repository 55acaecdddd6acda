"""Command line entrypoint for meteoforcing.

Commands:

* ``run``: resolve a daily meteorology file against a site parameter file.
* ``units``: print the unit of every output variable.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from meteoforcing.core.config import ConfigError, load_parameters, load_run
from meteoforcing.core.debug import NullDebugCollector, build_debug_collector
from meteoforcing.core.models import UNITS, VARNAMES, MeteoError, Period, ValidationError
from meteoforcing.engine.resolve import resolve_meteorology
from meteoforcing.weather.reader import read_meteo, write_meteo

__version__ = "0.1.0"

app = typer.Typer(add_completion=False, help="Daily meteorology resolver for crop model forcing")


def _exit_with_error(msg: str) -> None:
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(code=1)


def _resolve_period(start: Optional[str], end: Optional[str], run_section: dict) -> Optional[Period]:
    if start is None and end is None:
        return run_section.get("period")
    if start is None or end is None:
        _exit_with_error("--start and --end must be given together")
    try:
        return Period(start, end)
    except ValidationError as exc:
        _exit_with_error(str(exc))


@app.callback()
def version_callback(
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
):
    if version:
        typer.echo(__version__)
        raise typer.Exit()


@app.command()
def run(
    params: Path = typer.Option(..., "--params", "-p", help="Site parameter file (.yaml, .yml or .json)"),
    meteo: Optional[Path] = typer.Option(None, "--meteo", "-m", help="Daily meteorology file; defaults to run.meteo"),
    start: Optional[str] = typer.Option(None, help="First day of the period (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, help="Last day of the period (YYYY-MM-DD)"),
    timezone: Optional[str] = typer.Option(
        None,
        help="Time zone of the meteorology dates. TimezoneCF is only applied when this is UTC/GMT.",
    ),
    date_format: str = typer.Option("%Y-%m-%d", help="strftime format of the Date column"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (.csv or .json); defaults to meteo_resolved.csv"),
    debug: Optional[Path] = typer.Option(None, help="Write debug events to this path (.json or JSONL)"),
):
    """Resolve missing meteorology variables and write the daily forcing table."""

    try:
        parameters = load_parameters(params)
        run_section = load_run(params)
    except ConfigError as exc:
        _exit_with_error(str(exc))

    meteo_path = meteo or run_section.get("meteo")
    if meteo_path is None:
        _exit_with_error("No meteorology file given (use --meteo or run.meteo)")
    period = _resolve_period(start, end, run_section)
    effective_tz = timezone or run_section.get("timezone") or "UTC"
    output_path = output or Path(run_section.get("output") or "meteo_resolved.csv")
    debug_path = debug or run_section.get("debug")
    debug_collector = build_debug_collector(debug_path) if debug_path else NullDebugCollector()

    try:
        frame = read_meteo(Path(meteo_path), date_format=date_format)
        result = resolve_meteorology(frame, parameters, period=period, timezone=effective_tz, debug=debug_collector)
    except (MeteoError, ValueError) as exc:
        _exit_with_error(str(exc))
    finally:
        if hasattr(debug_collector, "finalize"):
            debug_collector.finalize()

    for message in result.warnings:
        typer.echo(f"Warning: {message}", err=True)

    write_meteo(result.table, output_path)
    typer.echo(f"Wrote {len(result.table)} days to {output_path}")
    if debug_path:
        typer.echo(f"Debug events -> {debug_path}")
    typer.echo("Meteo computation done")


@app.command()
def units():
    """Print the unit of every output variable."""
    for var in VARNAMES:
        typer.echo(f"{var}: {UNITS[var]}")


def main() -> None:  # pragma: no cover - thin wrapper for console_script
    app()


__all__ = ["app", "main"]


if __name__ == "__main__":  # pragma: no cover
    main()
