"""Similarity search over the semantic index."""

from .base import SimilaritySearch
from .searcher import BruteForceSearch, cosine_similarity
from .duplicates import (
    DuplicateGroup,
    DuplicateMember,
    find_duplicate_groups,
    find_similar_to_location,
)

__all__ = [
    "SimilaritySearch",
    "BruteForceSearch",
    "cosine_similarity",
    "DuplicateGroup",
    "DuplicateMember",
    "find_duplicate_groups",
    "find_similar_to_location",
]
