"""Scoring and serve rotation engines for roundnet."""

from . import roundnet, rotation

__all__ = [
    "roundnet",
    "rotation",
]
