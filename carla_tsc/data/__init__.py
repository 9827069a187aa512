"""Experiment data: archive download, simulation run discovery, segments."""

from .download import DataFetchError, download_and_unzip_experiments_data, extract_zip_file
from .segments import (
    MissingFactError,
    Segment,
    SegmentRecord,
    fact_registry,
    load_segments,
)
from .simulation_runs import SimulationRunsWrapper, get_simulation_runs, seed_of

__all__ = [
    "DataFetchError",
    "download_and_unzip_experiments_data",
    "extract_zip_file",
    "MissingFactError",
    "Segment",
    "SegmentRecord",
    "fact_registry",
    "load_segments",
    "SimulationRunsWrapper",
    "get_simulation_runs",
    "seed_of",
]
