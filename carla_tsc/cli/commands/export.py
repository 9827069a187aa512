"""Export command: write a built-in TSC declaration to YAML."""

from pathlib import Path

import typer

from ..app import app, console, get_json_mode
from ..utils import Output
from ...experiments import FLAT_DECLARATIONS, full_tsc_declaration


@app.command("export")
def export_command(
    output: Path = typer.Argument(..., help="Output YAML file"),
    flat: str | None = typer.Option(
        None,
        "--flat",
        help=f"Export a flat TSC instead: {', '.join(FLAT_DECLARATIONS)}",
    ),
):
    """
    Export the layered experiment TSC (or a flat one) as a YAML declaration.

    The exported file can be edited and passed back via --tsc.

    Example:
        carla-tsc export experiment.yaml
        carla-tsc export layer4_flat.yaml --flat layer-4
    """
    out = Output(console=console, json_mode=get_json_mode())

    if flat is None:
        declaration = full_tsc_declaration()
    elif flat in FLAT_DECLARATIONS:
        declaration = FLAT_DECLARATIONS[flat]()
    else:
        out.error(
            f"Unknown flat TSC: {flat}",
            suggestion=f"Choose one of: {', '.join(FLAT_DECLARATIONS)}",
        )
        raise typer.Exit(out.finish())

    declaration.to_yaml(output)
    out.success(
        f"Exported '{declaration.identifier}' to {output}",
        identifier=declaration.identifier,
        path=str(output),
    )
    raise typer.Exit(out.finish())
