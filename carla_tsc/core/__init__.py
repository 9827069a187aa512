"""Core infrastructure for carla-tsc.

- models: all Pydantic models organized by domain
"""

__all__ = [
    "models",
]
