"""carla-tsc: scenario classification trees for CARLA simulation experiments."""

__version__ = "0.5.0"
