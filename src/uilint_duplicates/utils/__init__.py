"""Utility functions for uilint-duplicates."""

from .file_utils import (
    find_project_root,
    to_project_path,
    is_binary_file,
)

__all__ = [
    "find_project_root",
    "to_project_path",
    "is_binary_file",
]
