"""Runs command: list the simulation runs found in the experiment data."""

from dataclasses import replace
from pathlib import Path

import typer

from ..app import app, console, get_json_mode
from ..utils import ExitCode, Output
from ...config import get_config
from ...data import get_simulation_runs


@app.command("runs")
def runs_command(
    data_dir: Path | None = typer.Option(
        None, "--data-dir", "-d", help="Directory the data was unpacked into"
    ),
):
    """
    List the simulation runs (static map file + dynamic seed files).

    Example:
        carla-tsc runs
    """
    out = Output(console=console, json_mode=get_json_mode())
    config = get_config()
    data_config = replace(config.data)
    if data_dir is not None:
        data_config.data_dir = str(data_dir)

    try:
        runs = get_simulation_runs(
            data_config.simulation_runs_dir,
            order_files_by_seed=config.evaluation.order_files_by_seed,
        )
    except FileNotFoundError as e:
        out.error(
            str(e),
            exit_code=ExitCode.FILE_NOT_FOUND,
            suggestion="Run 'carla-tsc fetch' first",
        )
        raise typer.Exit(out.finish())

    if out.json_mode:
        out.set_data(
            "runs",
            [
                {
                    "map": run.map_name,
                    "static_file": str(run.static_file),
                    "dynamic_files": [str(p) for p in run.dynamic_files],
                }
                for run in runs
            ],
        )
    else:
        out.table(
            f"Simulation runs ({len(runs)})",
            ["Map", "Static file", "Dynamic files"],
            [[run.map_name, run.static_file.name, str(len(run.dynamic_files))] for run in runs],
        )
    raise typer.Exit(out.finish())
