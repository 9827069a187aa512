"""Sizes command: possible instance counts of the experiment TSCs."""

from pathlib import Path

import typer
from pydantic import ValidationError

from ..app import app, console, get_json_mode
from ..utils import ExitCode, Output, report_validation
from ...data import fact_registry
from ...experiments import experiment_tscs, load_tsc_file
from ...tsc import TSC, TSCConstructionError, possible_instance_count


def resolve_tscs(out: Output, tsc_files: list[Path] | None) -> list[TSC] | None:
    """Experiment TSCs, or the TSCs declared in ``tsc_files`` if any are given.

    Reports the problem and returns None on failure.
    """
    registry = fact_registry()
    if not tsc_files:
        return experiment_tscs(registry)

    tscs: list[TSC] = []
    for path in tsc_files:
        if not path.exists():
            out.error(f"TSC file not found: {path}", exit_code=ExitCode.FILE_NOT_FOUND)
            return None
        try:
            tscs.extend(load_tsc_file(path, registry))
        except TSCConstructionError as e:
            out.error(f"Invalid TSC '{e.identifier}' in {path}")
            report_validation(out, e.result)
            return None
        except (ValidationError, ValueError, OSError) as e:
            out.error(f"Failed to load {path}: {e}")
            return None
    return tscs


@app.command("sizes")
def sizes_command(
    tsc_files: list[Path] | None = typer.Option(
        None, "--tsc", help="YAML TSC declaration(s) instead of the experiment TSCs"
    ),
):
    """
    Show how many distinct instances every TSC can produce.

    Example:
        carla-tsc sizes
        carla-tsc --json sizes --tsc my_tree.yaml
    """
    out = Output(console=console, json_mode=get_json_mode())

    tscs = resolve_tscs(out, tsc_files)
    if tscs is None:
        raise typer.Exit(out.finish())

    sizes = [(t.identifier, possible_instance_count(t)) for t in tscs]
    if out.json_mode:
        out.set_data(
            "sizes", [{"tsc": name, "possible_instances": n} for name, n in sizes]
        )
    else:
        out.table(
            "TSC sizes",
            ["TSC", "Possible instances"],
            [[name, f"{n:,}"] for name, n in sizes],
        )
    raise typer.Exit(out.finish())
