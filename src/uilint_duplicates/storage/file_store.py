"""IndexStore backed by an index directory inside the project."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

from ..core.models import StoredChunk
from .base import IndexStore
from .index_store import VectorIndex, clear_index, index_exists, load_index, write_index


class FileIndexStore(IndexStore):
    def __init__(self, index_dir: Path) -> None:
        self.index_dir = Path(index_dir)

    def save(
        self,
        metadata: Mapping[str, StoredChunk],
        vectors: Mapping[str, Sequence[float]],
        manifest: Dict,
    ) -> VectorIndex:
        return write_index(self.index_dir, metadata, vectors, manifest)

    def load(self) -> Optional[VectorIndex]:
        return load_index(self.index_dir)

    def exists(self) -> bool:
        return index_exists(self.index_dir)

    def clear(self) -> None:
        clear_index(self.index_dir)

    def __repr__(self) -> str:
        return f"FileIndexStore({str(self.index_dir)!r})"
