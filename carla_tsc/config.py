"""Configuration management for carla-tsc.

Three sections:
- data: where the experiment archive comes from and is unpacked to
- evaluation: segment filtering, parallelism and exclusive-conflict policy
- output: where result files go and which are written

Config resolution order (highest priority first):
1. Programmatic (CarlaTSCConfig constructed in code)
2. Environment variables (CARLA_TSC_DATA_DIR, CARLA_TSC_MAX_WORKERS, etc.)
3. Config file (~/.config/carla-tsc/config.json, managed by `carla-tsc config`)
4. Hardcoded defaults
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Config file location
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "carla-tsc"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_ARCHIVE_URL = (
    "https://zenodo.org/record/8131947/files/stars-reproduction-source.zip?download=1"
)


# =============================================================================
# Config sections
# =============================================================================


@dataclass
class DataConfig:
    """Location of the experiment data.

    The archive unpacks to ``data_dir / source_folder``; simulation runs
    live below it at ``simulation_runs_path``.
    """

    data_dir: str = "."
    archive_url: str = DEFAULT_ARCHIVE_URL
    source_folder: str = "stars-reproduction-source"
    simulation_runs_path: str = "stars-experiments-data/simulation_runs"

    @property
    def source_dir(self) -> Path:
        return Path(self.data_dir) / self.source_folder

    @property
    def archive_file(self) -> Path:
        return Path(self.data_dir) / f"{self.source_folder}.zip"

    @property
    def simulation_runs_dir(self) -> Path:
        return self.source_dir / self.simulation_runs_path


@dataclass
class EvaluationConfig:
    """Evaluation tuning."""

    min_segment_tick_count: int = 11
    max_workers: int = 4
    exclusive_policy: str = "report_all"  # report_all | first | reject
    order_files_by_seed: bool = True


@dataclass
class OutputConfig:
    output_dir: str = "./results"
    write_plot_data: bool = False
    save_results: bool = False


# =============================================================================
# Main config class
# =============================================================================

_INT_FIELDS = {"min_segment_tick_count", "max_workers"}
_BOOL_FIELDS = {"order_files_by_seed", "write_plot_data", "save_results"}


@dataclass
class CarlaTSCConfig:
    """Top-level carla-tsc configuration.

    Examples:
        # Package use, no files needed
        config = CarlaTSCConfig(evaluation=EvaluationConfig(max_workers=1))

        # CLI use, loads from ~/.config/carla-tsc/config.json
        config = CarlaTSCConfig.load()
    """

    data: DataConfig = field(default_factory=DataConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def load_file(cls) -> "CarlaTSCConfig":
        """Load config from the config file only (no env vars)."""
        config = cls()
        if CONFIG_FILE.exists():
            try:
                with open(CONFIG_FILE) as f:
                    data = json.load(f)
                _apply_dict(config, data)
            except (json.JSONDecodeError, OSError, ValueError) as exc:
                logger.warning("Failed to load config from %s: %s", CONFIG_FILE, exc)
        return config

    @classmethod
    def load(cls) -> "CarlaTSCConfig":
        """Load config from file + env vars.

        Priority: env var values > config.json values > defaults.
        """
        # Layer 1: Load from config file if it exists
        config = cls.load_file()

        # Layer 2: Env var overrides
        if val := os.environ.get("CARLA_TSC_DATA_DIR"):
            config.data.data_dir = val
        if val := os.environ.get("CARLA_TSC_ARCHIVE_URL"):
            config.data.archive_url = val
        if val := os.environ.get("CARLA_TSC_MIN_SEGMENT_TICKS"):
            try:
                config.evaluation.min_segment_tick_count = int(val)
            except ValueError:
                logger.warning("Invalid CARLA_TSC_MIN_SEGMENT_TICKS=%r, ignoring", val)
        if val := os.environ.get("CARLA_TSC_MAX_WORKERS"):
            try:
                config.evaluation.max_workers = int(val)
            except ValueError:
                logger.warning("Invalid CARLA_TSC_MAX_WORKERS=%r, ignoring", val)
        if val := os.environ.get("CARLA_TSC_EXCLUSIVE_POLICY"):
            config.evaluation.exclusive_policy = val
        if val := os.environ.get("CARLA_TSC_OUTPUT_DIR"):
            config.output.output_dir = val

        return config

    def save(self) -> None:
        """Save config to ~/.config/carla-tsc/config.json."""
        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for display."""
        return {
            "data": asdict(self.data),
            "evaluation": asdict(self.evaluation),
            "output": asdict(self.output),
        }

    def set_value(self, key: str, value: str) -> None:
        """Set a dotted key such as ``evaluation.max_workers`` from a string.

        Raises:
            KeyError: If the section or field does not exist.
            ValueError: If the value cannot be converted.
        """
        section_name, _, name = key.partition(".")
        section = getattr(self, section_name, None)
        if section is None or section_name not in self.to_dict() or not name:
            raise KeyError(f"Unknown config key: {key}")
        if name not in _field_names(section):
            raise KeyError(f"Unknown config key: {key}")
        setattr(section, name, _coerce(name, value))


# =============================================================================
# Config dict application
# =============================================================================


def _field_names(section: Any) -> set[str]:
    return {f.name for f in fields(section)}


def _coerce(name: str, value: Any) -> Any:
    if name in _INT_FIELDS:
        return int(value)
    if name in _BOOL_FIELDS and isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Invalid boolean for {name}: {value!r}")
    return value


def _apply_dict(config: CarlaTSCConfig, data: dict) -> None:
    """Apply a dict of values onto a CarlaTSCConfig."""
    for section_name in ("data", "evaluation", "output"):
        values = data.get(section_name)
        if not isinstance(values, dict):
            continue
        section = getattr(config, section_name)
        for k, v in values.items():
            if k in _field_names(section):
                setattr(section, k, _coerce(k, v))


# =============================================================================
# Global config singleton
# =============================================================================

_config: CarlaTSCConfig | None = None


def get_config() -> CarlaTSCConfig:
    """Get the global CarlaTSCConfig instance.

    First call loads from file + env vars. Subsequent calls return cached instance.
    Use configure() to replace the global config programmatically.
    """
    global _config
    if _config is None:
        _config = CarlaTSCConfig.load()
    return _config


def configure(config: CarlaTSCConfig) -> None:
    """Set the global CarlaTSCConfig programmatically."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global config (forces reload on next get_config())."""
    global _config
    _config = None
