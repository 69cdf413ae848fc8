"""Lint-time semantic duplicate reporting."""

from .adapter import Finding, IncrementalQueryAdapter
from .runner import lint_file, lint_paths

__all__ = [
    "Finding",
    "IncrementalQueryAdapter",
    "lint_file",
    "lint_paths",
]
