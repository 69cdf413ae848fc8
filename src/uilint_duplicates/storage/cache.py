"""Process-wide read-through cache of loaded indexes."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..config import DEFAULT_INDEX_DIR
from .factory import resolve_index_dir
from .index_store import VectorIndex, load_index

logger = logging.getLogger(__name__)

_CacheKey = Tuple[str, str]


class IndexCache:
    """Loaded indexes keyed by project root.

    A missing or corrupt index is cached as well, so a project without an index
    is only probed once. Entries live until ``invalidate`` is called; the indexer
    calls it after writing.
    """

    def __init__(self) -> None:
        self._entries: Dict[_CacheKey, Optional[VectorIndex]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(project_root: Path, index_dir: Optional[str]) -> _CacheKey:
        root = Path(project_root).resolve()
        return str(root), str(resolve_index_dir(root, index_dir))

    def get(self, project_root: Path, index_dir: Optional[str] = DEFAULT_INDEX_DIR) -> Optional[VectorIndex]:
        key = self._key(project_root, index_dir)
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            index = load_index(Path(key[1]))
            self._entries[key] = index
            logger.debug(f"Cached index for {key[0]} ({'loaded' if index is not None else 'missing'})")
            return index

    def put(self, project_root: Path, index: Optional[VectorIndex], index_dir: Optional[str] = DEFAULT_INDEX_DIR) -> None:
        with self._lock:
            self._entries[self._key(project_root, index_dir)] = index

    def invalidate(self, project_root: Optional[Path] = None) -> None:
        """Drop cached entries for one project root, or all of them."""
        with self._lock:
            if project_root is None:
                self._entries.clear()
                return
            root = str(Path(project_root).resolve())
            for key in [k for k in self._entries if k[0] == root]:
                del self._entries[key]

    def __contains__(self, project_root: object) -> bool:
        if not isinstance(project_root, (str, Path)):
            return False
        root = str(Path(project_root).resolve())
        with self._lock:
            return any(k[0] == root for k in self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_default_cache = IndexCache()


def default_cache() -> IndexCache:
    return _default_cache
