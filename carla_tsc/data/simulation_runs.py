"""Discovery of CARLA simulation runs in the experiment data folder.

Each map folder holds one ``*static_data*`` file and one or more
``*dynamic_data*`` files, one per simulation seed.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

SEED_PATTERN = re.compile(r"_seed([0-9]{1,4})")


@dataclass
class SimulationRunsWrapper:
    """The static map file plus the dynamic files recorded on that map."""

    static_file: Path
    dynamic_files: list[Path] = field(default_factory=list)

    @property
    def map_name(self) -> str:
        return self.static_file.parent.name


def seed_of(path: Path) -> int:
    """Seed number encoded in a file name, 0 if there is none."""
    match = SEED_PATTERN.search(path.name)
    return int(match.group(1)) if match else 0


def _scan_map_folder(
    folder: Path, order_files_by_seed: bool
) -> SimulationRunsWrapper | None:
    static_file: Path | None = None
    dynamic_files: list[Path] = []
    for path in sorted(folder.rglob("*")):
        if not path.is_file():
            continue
        stem = path.name.split(".", 1)[0]
        if "static_data" in stem:
            static_file = path
        if "dynamic_data" in stem:
            dynamic_files.append(path)

    if static_file is None or not dynamic_files:
        logger.debug("Skipping %s: no static or dynamic data", folder)
        return None

    if order_files_by_seed:
        dynamic_files.sort(key=seed_of)
    return SimulationRunsWrapper(static_file=static_file, dynamic_files=dynamic_files)


def get_simulation_runs(
    root: Path | str, order_files_by_seed: bool = True
) -> list[SimulationRunsWrapper]:
    """Collect one SimulationRunsWrapper per map folder below ``root``.

    Folders lacking a static or a dynamic data file are skipped.

    Raises:
        FileNotFoundError: If ``root`` is not a directory.
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Simulation runs folder not found: {root}")

    runs = []
    for folder in sorted(p for p in root.rglob("*") if p.is_dir()):
        wrapper = _scan_map_folder(folder, order_files_by_seed)
        if wrapper is not None:
            runs.append(wrapper)
    logger.info("Found %d simulation runs in %s", len(runs), root)
    return runs
