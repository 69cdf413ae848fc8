"""Factory for creating index store instances."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from ..config import DEFAULT_INDEX_DIR
from .base import IndexStore
from .file_store import FileIndexStore


def resolve_index_dir(project_root: Path, index_dir: Optional[str] = None) -> Path:
    """Absolute index directory; relative settings are taken from the project root."""
    path = Path(index_dir or DEFAULT_INDEX_DIR)
    if not path.is_absolute():
        path = Path(project_root) / path
    return path


def create_index_store(cfg: Dict, project_root: Path) -> IndexStore:
    return FileIndexStore(resolve_index_dir(project_root, cfg.get("index_dir")))
