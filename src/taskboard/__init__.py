"""Staged task editing for a task board."""

__version__ = "0.1.0"
