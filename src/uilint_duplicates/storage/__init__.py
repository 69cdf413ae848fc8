"""Semantic index storage (file based)."""

from .index_store import (
    EMBEDDINGS_FILE,
    IDS_FILE,
    MANIFEST_FILE,
    METADATA_FILE,
    CorruptIndexError,
    VectorIndex,
    load_index,
    write_index,
)
from .base import IndexStore
from .file_store import FileIndexStore
from .factory import create_index_store, resolve_index_dir
from .cache import IndexCache, default_cache

__all__ = [
    "EMBEDDINGS_FILE",
    "IDS_FILE",
    "MANIFEST_FILE",
    "METADATA_FILE",
    "CorruptIndexError",
    "VectorIndex",
    "load_index",
    "write_index",
    "IndexStore",
    "FileIndexStore",
    "create_index_store",
    "resolve_index_dir",
    "IndexCache",
    "default_cache",
]
