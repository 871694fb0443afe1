"""CLI command groups."""

from .bootstrap import plan, run, status

__all__ = ["plan", "run", "status"]
