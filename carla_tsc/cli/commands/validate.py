"""Validate command: check a YAML TSC declaration."""

from pathlib import Path

import typer
import yaml
from pydantic import ValidationError

from ..app import app, console, get_json_mode
from ..utils import ExitCode, Output, report_validation, require_file
from ...core.models import TSCDeclaration
from ...data import fact_registry
from ...tsc import validate_declaration


@app.command("validate")
def validate_command(
    tsc_file: Path = typer.Argument(..., help="TSC declaration YAML file"),
):
    """
    Validate a TSC declaration against the experiment predicates.

    Reports structural errors (bounds, duplicate labels, dangling projections),
    unknown predicates and malformed condition expressions.

    EXIT CODES:
        0 = Valid (warnings allowed)
        1 = Validation errors
        3 = File not found

    Example:
        carla-tsc validate my_tree.yaml
    """
    out = Output(console=console, json_mode=get_json_mode())

    if not require_file(out, tsc_file, "TSC file"):
        raise typer.Exit(out.finish())

    try:
        declaration = TSCDeclaration.from_yaml(tsc_file)
    except (yaml.YAMLError, ValidationError, ValueError) as e:
        out.error(f"Failed to parse {tsc_file}: {e}")
        raise typer.Exit(out.finish())

    result = validate_declaration(declaration, fact_registry())
    report_validation(out, result)

    if result.valid:
        nodes = sum(1 for _ in declaration.root.walk())
        out.success(
            f"TSC '{declaration.identifier}' is valid ({nodes} nodes, "
            f"{len(result.warnings)} warnings)",
            identifier=declaration.identifier,
            node_count=nodes,
        )
    else:
        out.text(f"\n{len(result.errors)} error(s) in '{declaration.identifier}'")
    raise typer.Exit(out.finish())
