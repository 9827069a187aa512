"""Command line interface for carla-tsc."""

from .app import app

__all__ = ["app"]
