"""Indexing functionality for uilint-duplicates."""

from .base import Indexer, ProgressCallback
from .indexer import DefaultIndexer, build_index, iter_files

__all__ = [
    "Indexer",
    "ProgressCallback",
    "DefaultIndexer",
    "build_index",
    "iter_files",
]
