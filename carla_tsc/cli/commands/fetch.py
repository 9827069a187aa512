"""Fetch command: download and unpack the experiment data."""

from dataclasses import replace
from pathlib import Path

import typer

from ..app import app, console, get_json_mode
from ..utils import ExitCode, Output
from ...config import get_config
from ...data import DataFetchError, download_and_unzip_experiments_data


@app.command("fetch")
def fetch_command(
    data_dir: Path | None = typer.Option(
        None, "--data-dir", "-d", help="Directory to unpack into (default from config)"
    ),
    url: str | None = typer.Option(None, "--url", help="Archive URL override"),
):
    """
    Download and unzip the experiment data unless it is already present.

    Example:
        carla-tsc fetch
        carla-tsc fetch --data-dir ./data
    """
    out = Output(console=console, json_mode=get_json_mode())
    data_config = replace(get_config().data)
    if data_dir is not None:
        data_config.data_dir = str(data_dir)
    if url:
        data_config.archive_url = url

    try:
        if not out.json_mode and not data_config.source_dir.exists():
            with console.status("Downloading and extracting experiment data..."):
                source_dir = download_and_unzip_experiments_data(data_config)
        else:
            source_dir = download_and_unzip_experiments_data(data_config)
    except DataFetchError as e:
        out.error(str(e), exit_code=ExitCode.DATA_ERROR)
        raise typer.Exit(out.finish())

    out.success(f"Experiment data available at {source_dir}", source_dir=str(source_dir))
    raise typer.Exit(out.finish())
