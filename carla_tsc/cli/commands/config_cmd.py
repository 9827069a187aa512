"""Config command for viewing and managing carla-tsc configuration."""

import typer

from ..app import app, console, get_json_mode
from ..utils import Output
from ...config import CONFIG_FILE, CarlaTSCConfig, get_config, reset_config


VALID_KEYS = {
    "data.data_dir",
    "data.archive_url",
    "data.source_folder",
    "data.simulation_runs_path",
    "evaluation.min_segment_tick_count",
    "evaluation.max_workers",
    "evaluation.exclusive_policy",
    "evaluation.order_files_by_seed",
    "output.output_dir",
    "output.write_plot_data",
    "output.save_results",
}


@app.command("config")
def config_command(
    action: str = typer.Argument(
        ...,
        help="Action: show, set, reset",
    ),
    key: str | None = typer.Argument(
        None,
        help="Config key (e.g. evaluation.max_workers, data.data_dir)",
    ),
    value: str | None = typer.Argument(
        None,
        help="Value to set",
    ),
):
    """View or modify carla-tsc configuration.

    Examples:
        carla-tsc config show
        carla-tsc config set evaluation.max_workers 8
        carla-tsc config set evaluation.exclusive_policy reject
        carla-tsc config reset
    """
    if action == "show":
        _show_config()
    elif action == "set":
        if not key or value is None:
            console.print("[red]Usage:[/red] carla-tsc config set <key> <value>")
            console.print()
            console.print("Available keys:")
            for k in sorted(VALID_KEYS):
                console.print(f"  {k}")
            raise typer.Exit(1)
        _set_config(key, value)
    elif action == "reset":
        _reset_config()
    else:
        console.print(f"[red]Unknown action:[/red] {action}")
        console.print("Valid actions: show, set, reset")
        raise typer.Exit(1)


def _show_config():
    """Display current resolved configuration."""
    config = get_config()

    if get_json_mode():
        out = Output(console=console, json_mode=True)
        out.set_data("config", config.to_dict())
        out.set_data("config_file", str(CONFIG_FILE))
        raise typer.Exit(out.finish())

    console.print()
    console.print("[bold]carla-tsc Configuration[/bold]")
    console.print("─" * 40)

    for section, values in config.to_dict().items():
        console.print()
        console.print(f"[bold cyan]{section.capitalize()}[/bold cyan]")
        width = max(len(k) for k in values)
        for k, v in values.items():
            console.print(f"  {k.ljust(width)} = {v}")

    console.print()
    if CONFIG_FILE.exists():
        console.print(f"Config file: {CONFIG_FILE}")
    else:
        console.print(f"Config file: [dim]not created yet[/dim] ({CONFIG_FILE})")
    console.print()


def _set_config(key: str, value: str):
    """Set a config value and save."""
    if key not in VALID_KEYS:
        console.print(f"[red]Unknown key:[/red] {key}")
        console.print()
        console.print("Available keys:")
        for k in sorted(VALID_KEYS):
            console.print(f"  {k}")
        raise typer.Exit(1)

    # Only file values are persisted; env overrides stay out of the file
    config = CarlaTSCConfig.load_file()
    try:
        config.set_value(key, value)
    except ValueError:
        console.print(f"[red]Invalid value for {key}:[/red] {value}")
        raise typer.Exit(1)

    config.save()
    reset_config()  # Clear cached singleton so next get_config() reloads

    console.print(f"[green]✓[/green] Set {key} = {value}")
    console.print(f"  Saved to {CONFIG_FILE}")


def _reset_config():
    """Reset config to defaults."""
    if CONFIG_FILE.exists():
        CONFIG_FILE.unlink()
        reset_config()
        console.print("[green]✓[/green] Config reset to defaults")
        console.print(f"  Removed {CONFIG_FILE}")
    else:
        console.print("Config already at defaults (no config file exists)")
