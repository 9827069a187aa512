"""Result files: per-TSC CSV plot data and serialized JSON results."""

import csv
import logging
import re
from pathlib import Path

from .runner import EvaluationRun

logger = logging.getLogger(__name__)

PLOT_DATA_DIR = "plot_data"
SERIALIZED_RESULTS_FILE = "results.json"


def file_slug(identifier: str) -> str:
    """File-name-safe form of a TSC identifier ("Layer (4)+5" -> "layer_4_5")."""
    token = identifier.strip().lower()
    token = re.sub(r"[\s\-+/]+", "_", token)
    token = re.sub(r"[^a-z0-9_]", "", token)
    token = re.sub(r"_+", "_", token).strip("_")
    return token or "tsc"


def write_plot_data_csv(run: EvaluationRun, output_dir: Path | str) -> list[Path]:
    """Write one CSV per TSC listing each observed instance and its count.

    Returns:
        Paths of the written files, in TSC order.
    """
    target_dir = Path(output_dir) / PLOT_DATA_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    written = []
    used: set[str] = set()
    for summary in run.summaries():
        slug = file_slug(summary.tsc_identifier)
        name, n = slug, 1
        while name in used:
            n += 1
            name = f"{slug}_{n}"
        used.add(name)

        path = target_dir / f"{name}.csv"
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["instance", "count"])
            for occurrence in summary.instances:
                writer.writerow([occurrence.key, occurrence.count])
        written.append(path)

    logger.info("Wrote %d plot data files to %s", len(written), target_dir)
    return written


def write_serialized_results(run: EvaluationRun, output_dir: Path | str) -> Path:
    """Serialize the run's report to JSON."""
    path = Path(output_dir) / SERIALIZED_RESULTS_FILE
    run.report().to_json(path)
    logger.info("Wrote serialized results to %s", path)
    return path
