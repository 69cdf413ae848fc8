"""Exception hierarchy for uilint-duplicates."""


class DuplicatesError(Exception):
    """Base exception for all uilint-duplicates errors."""


class ConfigError(DuplicatesError):
    """Invalid configuration value."""


class EmbeddingError(DuplicatesError):
    """Embedding provider request failed or returned an unusable response."""


class NoIndexError(DuplicatesError):
    """No semantic index exists for the requested project."""
