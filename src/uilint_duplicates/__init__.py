"""Semantic duplicate detection for React/TypeScript codebases."""

from .api import (
    find_duplicates,
    find_similar_at_location,
    get_index_stats,
    has_index,
    index_directory,
    search_similar,
)
from .errors import ConfigError, DuplicatesError, EmbeddingError, NoIndexError

__version__ = "0.1.0"

__all__ = [
    "find_duplicates",
    "find_similar_at_location",
    "get_index_stats",
    "has_index",
    "index_directory",
    "search_similar",
    "ConfigError",
    "DuplicatesError",
    "EmbeddingError",
    "NoIndexError",
]
