"""High-level query API: indexing, duplicate groups and semantic search."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .config import load_config
from .core import Embedder, IndexStats, QueryResult, make_embedder
from .errors import NoIndexError
from .indexing import ProgressCallback, build_index
from .search import (
    BruteForceSearch,
    DuplicateGroup,
    find_duplicate_groups,
    find_similar_to_location,
)
from .storage import IndexCache, VectorIndex, create_index_store, default_cache
from .utils import to_project_path

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_SEARCH_THRESHOLD = 0.5
DEFAULT_SEARCH_TOP_K = 10


@dataclasses.dataclass
class SearchResult:
    id: str
    file_path: str
    start_line: int
    end_line: int
    name: Optional[str]
    kind: str
    score: float

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "filePath": self.file_path,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "name": self.name,
            "kind": self.kind,
            "score": self.score,
        }


def _config(cfg: Optional[Dict]) -> Dict:
    return cfg if cfg is not None else load_config()


def _require_index(root: Path, cfg: Dict, cache: IndexCache) -> VectorIndex:
    index = cache.get(root, cfg.get("index_dir"))
    if index is None:
        raise NoIndexError(
            f"No index found at {root}. Run 'uilint-duplicates index' first."
        )
    return index


def _to_results(index: VectorIndex, results: Sequence[QueryResult]) -> List[SearchResult]:
    out: List[SearchResult] = []
    for r in results:
        chunk = index.metadata.get(r.id)
        if chunk is None:
            continue
        out.append(
            SearchResult(
                id=r.id,
                file_path=chunk.file_path,
                start_line=chunk.start_line,
                end_line=chunk.end_line,
                name=chunk.name,
                kind=chunk.kind,
                score=r.score,
            )
        )
    return out


def index_directory(
    path: PathLike,
    cfg: Optional[Dict] = None,
    force: bool = False,
    progress: Optional[ProgressCallback] = None,
    embedder: Optional[Embedder] = None,
    cache: Optional[IndexCache] = None,
) -> IndexStats:
    """Create or refresh the index of the project at ``path``."""
    cache = cache if cache is not None else default_cache()
    return build_index(
        Path(path).resolve(),
        _config(cfg),
        force=force,
        progress=progress,
        embedder=embedder,
        cache=cache,
    )


def find_duplicates(
    path: PathLike,
    threshold: Optional[float] = None,
    min_group_size: Optional[int] = None,
    kind: Optional[str] = None,
    exclude_paths: Optional[Sequence[str]] = None,
    cfg: Optional[Dict] = None,
    cache: Optional[IndexCache] = None,
) -> List[DuplicateGroup]:
    """Groups of semantically similar code in an indexed project.

    Raises:
        NoIndexError: If the project has no usable index
    """
    cfg = _config(cfg)
    cache = cache if cache is not None else default_cache()
    index = _require_index(Path(path).resolve(), cfg, cache)
    return find_duplicate_groups(
        index,
        threshold=threshold if threshold is not None else float(cfg["search"]["threshold"]),
        min_group_size=min_group_size if min_group_size is not None else int(cfg["search"]["min_group_size"]),
        kind=kind,
        exclude_paths=exclude_paths,
    )


def search_similar(
    query: str,
    path: PathLike,
    top_k: int = DEFAULT_SEARCH_TOP_K,
    threshold: float = DEFAULT_SEARCH_THRESHOLD,
    cfg: Optional[Dict] = None,
    embedder: Optional[Embedder] = None,
    cache: Optional[IndexCache] = None,
) -> List[SearchResult]:
    """Code semantically similar to a natural-language or code query.

    Raises:
        NoIndexError: If the project has no usable index
        EmbeddingError: If the query cannot be embedded
    """
    cfg = _config(cfg)
    cache = cache if cache is not None else default_cache()
    index = _require_index(Path(path).resolve(), cfg, cache)

    model = index.manifest.get("embeddingModel")
    embedder = embedder or make_embedder(cfg, model_name=model)
    vector = embedder.embed_one(query)

    results = BruteForceSearch().query_vector(index, vector, threshold, top_k=top_k)
    return _to_results(index, results)


def find_similar_at_location(
    path: PathLike,
    file_path: PathLike,
    line: int,
    top_k: int = DEFAULT_SEARCH_TOP_K,
    threshold: float = DEFAULT_SEARCH_THRESHOLD,
    cfg: Optional[Dict] = None,
    cache: Optional[IndexCache] = None,
) -> List[SearchResult]:
    """Code similar to the chunk covering ``file_path:line``.

    Raises:
        NoIndexError: If the project has no usable index
    """
    cfg = _config(cfg)
    cache = cache if cache is not None else default_cache()
    root = Path(path).resolve()
    index = _require_index(root, cfg, cache)

    rel = to_project_path(file_path, root)
    results = find_similar_to_location(index, rel, line, threshold=threshold, top_k=top_k)
    return _to_results(index, results)


def has_index(path: PathLike, cfg: Optional[Dict] = None) -> bool:
    return create_index_store(_config(cfg), Path(path).resolve()).exists()


def get_index_stats(
    path: PathLike,
    cfg: Optional[Dict] = None,
    cache: Optional[IndexCache] = None,
) -> Dict:
    """Summary of the stored index; zeros when there is none."""
    cfg = _config(cfg)
    cache = cache if cache is not None else default_cache()
    root = Path(path).resolve()
    index = cache.get(root, cfg.get("index_dir"))
    if index is None:
        return {
            "hasIndex": False,
            "totalFiles": 0,
            "totalChunks": 0,
            "totalVectors": 0,
            "dimension": 0,
            "indexSizeBytes": 0,
            "embeddingModel": None,
            "lastUpdated": None,
        }
    return {
        "hasIndex": True,
        "totalFiles": len(index.file_to_chunks),
        "totalChunks": len(index.metadata),
        "totalVectors": len(index),
        "dimension": index.dimension,
        "indexSizeBytes": int(index.vectors.nbytes),
        "embeddingModel": index.manifest.get("embeddingModel"),
        "lastUpdated": index.manifest.get("updatedAt"),
    }
