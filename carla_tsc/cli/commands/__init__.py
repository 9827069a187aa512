"""CLI commands for carla-tsc."""

from . import (
    config_cmd,
    evaluate,
    export,
    fetch,
    runs,
    sizes,
    validate,
)

__all__ = [
    "config_cmd",
    "evaluate",
    "export",
    "fetch",
    "runs",
    "sizes",
    "validate",
]
