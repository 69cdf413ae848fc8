"""Configuration management for uilint-duplicates."""

from .manager import (
    DEFAULT_CONFIG,
    DEFAULT_INDEX_DIR,
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_EXCLUDE_PATTERNS,
    load_config,
    cfg_fingerprint,
    embedding_model_name,
    expand_pattern,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_INDEX_DIR",
    "DEFAULT_INCLUDE_PATTERNS",
    "DEFAULT_EXCLUDE_PATTERNS",
    "load_config",
    "cfg_fingerprint",
    "embedding_model_name",
    "expand_pattern",
]
