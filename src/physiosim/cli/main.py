"""Main CLI application."""

from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import typer
from rich.console import Console
from rich.table import Table

from .. import app_api
from ..contracts.errors import PhysioSimError
from ..projections import build_meter_definitions, meter_values
from ..scenario import Scenario
from .logs import configure_logging

app = typer.Typer(
    name="physiosim",
    help="Physiological signal simulation engine",
    no_args_is_help=True
)
console = Console()

DEFAULT_SUMMARY_SIGNALS = ("cortisol", "glucose", "insulin", "dopamine", "norepi", "melatonin")


def _fail(e: PhysioSimError) -> None:
    console.print(f"❌ {e.message}", style="red")
    if e.details:
        console.print(f"Details: {e.details}")
    raise typer.Exit(1)


@app.command()
def simulate(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    timeline: Optional[Path] = typer.Option(
        None, "--timeline", "-t", help="JSON timeline (item list or scenario snapshot)"
    ),
    step: Optional[float] = typer.Option(
        None, "--step", help="Grid step in minutes"
    ),
    days: Optional[float] = typer.Option(
        None, "--days", help="Number of simulated days"
    ),
    baselines: Optional[bool] = typer.Option(
        None, "--baselines/--no-baselines", help="Toggle circadian baselines"
    ),
    interventions: Optional[bool] = typer.Option(
        None, "--interventions/--no-interventions", help="Toggle timeline interventions"
    ),
    conditions: Optional[bool] = typer.Option(
        None, "--conditions/--no-conditions", help="Toggle condition adjustments"
    ),
    couplings: Optional[bool] = typer.Option(
        None, "--couplings/--no-couplings", help="Toggle signal couplings"
    ),
    auxiliary: Optional[bool] = typer.Option(
        None, "--auxiliary/--no-auxiliary", help="Toggle auxiliary pool dynamics"
    ),
    receptors: Optional[bool] = typer.Option(
        None, "--receptors/--no-receptors", help="Toggle receptor density adaptation"
    ),
    transporters: Optional[bool] = typer.Option(
        None, "--transporters/--no-transporters", help="Toggle transporter activity"
    ),
    enzymes: Optional[bool] = typer.Option(
        None, "--enzymes/--no-enzymes", help="Toggle enzyme activity"
    ),
    signals: Optional[str] = typer.Option(
        None, "--signals", "-s", help="Comma-separated signals to summarise"
    ),
    playhead: float = typer.Option(
        720.0, "--at", help="Playhead minute for meter values"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write all series to a CSV file"
    ),
    log_level: str = typer.Option(
        "warning", "--log-level", help="Log level (debug, info, warning, error)"
    ),
    json_logs: bool = typer.Option(
        False, "--json-logs", help="Emit JSON log lines"
    ),
):
    """Run a simulation and summarise the resulting signals."""

    try:
        configure_logging(log_level, json_logs)

        if config:
            cfg = app_api.load_config_from_file(config)
            console.print(f"✓ Loaded configuration from {config}")
        else:
            cfg = app_api.get_default_config()
            console.print("✓ Using default configuration")

        items = []
        if timeline:
            loaded = app_api.load_timeline(timeline)
            if isinstance(loaded, Scenario):
                cfg = loaded.apply_to(cfg)
                items = list(loaded.items)
                console.print(f"✓ Loaded scenario '{loaded.name}' with {len(items)} items")
            else:
                items = loaded
                console.print(f"✓ Loaded timeline with {len(items)} items")

        grid_options = {"engine.grid_step_min": step, "engine.days": days}
        engine_updates = {key: value for key, value in grid_options.items() if value is not None}
        if engine_updates:
            cfg = app_api.apply_config_overrides(cfg, engine_updates)
            console.print(f"✓ Grid override: {engine_updates}")

        toggle_options = {
            "debug.enable_baselines": baselines,
            "debug.enable_interventions": interventions,
            "debug.enable_conditions": conditions,
            "debug.enable_couplings": couplings,
            "debug.enable_auxiliary": auxiliary,
            "debug.enable_receptors": receptors,
            "debug.enable_transporters": transporters,
            "debug.enable_enzymes": enzymes,
        }
        toggle_overrides = {key: value for key, value in toggle_options.items() if value is not None}
        if toggle_overrides:
            cfg = app_api.apply_config_overrides(cfg, toggle_overrides)
            console.print(f"✓ Debug toggles: {toggle_overrides}")

        for warning in app_api.validate_configuration(cfg):
            console.print(f"⚠ {warning}", style="yellow")
        console.print("✓ Configuration validated")

        with console.status("Running simulation..."):
            result = app_api.run_simulation(items, cfg)

        console.print(f"✅ Simulation completed: {result.run_id}", style="green")
        console.print(f"Runtime: {result.runtime_seconds:.2f}s")
        if result.failed_signals:
            console.print(f"⚠ Fallback dynamics used for: {', '.join(result.failed_signals)}", style="yellow")

        keys = [s.strip() for s in signals.split(",")] if signals else list(DEFAULT_SUMMARY_SIGNALS)
        table = Table(title="Signal Summary")
        table.add_column("Signal")
        table.add_column("Min")
        table.add_column("Mean")
        table.add_column("Max")
        table.add_column("Final")
        for key in keys:
            values = result.get(key)
            if len(values) == 0:
                table.add_row(key, "-", "-", "-", "-")
                continue
            table.add_row(
                key,
                f"{np.min(values):.4g}",
                f"{np.mean(values):.4g}",
                f"{np.max(values):.4g}",
                f"{values[-1]:.4g}",
            )
        console.print(table)

        meters = meter_values(
            result.series,
            playhead,
            cfg.engine.grid_step_min,
            build_meter_definitions(cfg.projections.meters),
        )
        meter_table = Table(title=f"Meters at minute {playhead:g}")
        meter_table.add_column("Meter")
        meter_table.add_column("Value")
        for key, value in meters.items():
            meter_table.add_row(key, f"{value:.3f}")
        console.print(meter_table)

        if output:
            result.to_dataframe(include_auxiliary=True).to_csv(output)
            console.print(f"✓ Series saved to {output}")

    except PhysioSimError as e:
        _fail(e)


@app.command()
def validate(
    config: Path = typer.Argument(..., help="Configuration file to validate")
):
    """Validate a configuration file."""

    try:
        cfg = app_api.load_config_from_file(config)
        for warning in app_api.validate_configuration(cfg):
            console.print(f"⚠ {warning}", style="yellow")
        console.print(f"✅ Configuration {config} is valid", style="green")

    except PhysioSimError as e:
        _fail(e)


@app.command("list-interventions")
def list_interventions(
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Restrict to one palette group")
):
    """List catalog interventions by group."""

    try:
        groups = app_api.list_interventions(group)
        for name, keys in groups.items():
            table = Table(title=name)
            table.add_column("Key")
            table.add_column("Label")
            table.add_column("Parameters")
            for key in keys:
                entry = app_api.get_intervention(key)
                params = ", ".join(f"{p.key}={p.default}" for p in entry.params)
                table.add_row(key, entry.label, params)
            console.print(table)

    except PhysioSimError as e:
        _fail(e)


@app.command("list-signals")
def list_signals(
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Restrict to one signal group")
):
    """List simulated signals."""

    records = app_api.list_signals(group)
    if not records:
        console.print(f"No signals in group {group}")
        return

    table = Table(title="Signals")
    table.add_column("Key")
    table.add_column("Label")
    table.add_column("Unit")
    table.add_column("Group")
    table.add_column("Tau (min)")
    for record in records:
        label = record["label"] + (" (fallback)" if record["fallback"] else "")
        table.add_row(record["key"], label, record["unit"], record["group"], f"{record['tau_min']:g}")
    console.print(table)


@app.command()
def explain(
    meter: str = typer.Argument(..., help="Meter key (e.g. focus)"),
    top_n: Optional[int] = typer.Option(None, "--top-n", "-n", help="Number of contributors"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
):
    """Show the signals that contribute most to a meter."""

    try:
        cfg = app_api.load_config_from_file(config) if config else app_api.get_default_config()
        contributors = app_api.explain_meter(meter, cfg, top_n)

        table = Table(title=f"Top contributors: {meter}")
        table.add_column("Signal")
        table.add_column("Weight")
        for signal, weight in contributors:
            table.add_row(signal, f"{weight:+.2f}")
        console.print(table)

    except PhysioSimError as e:
        _fail(e)


@app.command()
def info():
    """Display package information and diagnostics."""

    from .. import __version__

    console.print(f"physiosim v{__version__}")
    console.print()

    signals = app_api.list_signals()
    fallback = sum(1 for record in signals if record["fallback"])
    console.print(f"Signals: {len(signals)} ({fallback} with fallback dynamics)")

    try:
        groups: Dict[str, List[str]] = app_api.list_interventions()
        console.print(f"Interventions: {sum(len(keys) for keys in groups.values())}")
        for name, keys in groups.items():
            console.print(f"  {name}: {len(keys)}")
    except PhysioSimError as e:
        console.print(f"Could not load catalog: {e.message}", style="red")


if __name__ == "__main__":
    app()
