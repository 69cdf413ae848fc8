"""Grouping of semantically similar chunks across the whole index."""

from __future__ import annotations

import dataclasses
from typing import Dict, List, Optional, Sequence

from ..core.models import QueryResult, StoredChunk
from ..storage.index_store import VectorIndex
from .base import SimilaritySearch
from .searcher import BruteForceSearch

# Candidates considered per reference chunk
GROUP_CANDIDATES = 50


@dataclasses.dataclass
class DuplicateMember:
    id: str
    chunk: StoredChunk
    # 1.0 for the reference member
    score: float

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "filePath": self.chunk.file_path,
            "startLine": self.chunk.start_line,
            "endLine": self.chunk.end_line,
            "name": self.chunk.name,
            "kind": self.chunk.kind,
            "score": self.score,
        }


@dataclasses.dataclass
class DuplicateGroup:
    members: List[DuplicateMember]
    avg_similarity: float
    kind: str

    def to_dict(self) -> Dict:
        return {
            "members": [m.to_dict() for m in self.members],
            "avgSimilarity": self.avg_similarity,
            "kind": self.kind,
        }


def _excluded(chunk: StoredChunk, exclude_paths: Sequence[str]) -> bool:
    return any(p in chunk.file_path for p in exclude_paths)


def _average(scores: Sequence[float]) -> float:
    return sum(scores) / len(scores) if scores else 0.0


def find_duplicate_groups(
    index: VectorIndex,
    threshold: float = 0.85,
    min_group_size: int = 2,
    kind: Optional[str] = None,
    exclude_paths: Optional[Sequence[str]] = None,
    search: Optional[SimilaritySearch] = None,
) -> List[DuplicateGroup]:
    """Greedily group similar chunks.

    Each unprocessed chunk becomes the reference of a group made of its similar,
    still unprocessed chunks. Without a ``kind`` filter, candidates of the
    reference's own kind are preferred when there are any.

    Returns:
        Groups ordered by size, then average similarity, both descending
    """
    search = search or BruteForceSearch()
    exclude_paths = list(exclude_paths or [])

    entries = [
        (chunk_id, chunk)
        for chunk_id, chunk in index.metadata.items()
        if (kind is None or chunk.kind == kind) and not _excluded(chunk, exclude_paths)
    ]

    groups: List[DuplicateGroup] = []
    processed: set[str] = set()

    for chunk_id, chunk in entries:
        if chunk_id in processed:
            continue
        if not index.has_vector(chunk_id):
            continue

        similar = search.query(index, chunk_id, threshold, top_k=GROUP_CANDIDATES)

        candidates: List[QueryResult] = []
        for result in similar:
            if result.id in processed:
                continue
            other = index.metadata.get(result.id)
            if other is None:
                continue
            if kind is not None and other.kind != kind:
                continue
            if _excluded(other, exclude_paths):
                continue
            candidates.append(result)

        if kind is None and candidates:
            same_kind = [c for c in candidates if index.metadata[c.id].kind == chunk.kind]
            if same_kind:
                candidates = same_kind

        if len(candidates) < min_group_size - 1:
            continue

        members = [DuplicateMember(id=chunk_id, chunk=chunk, score=1.0)]
        for candidate in candidates:
            members.append(
                DuplicateMember(id=candidate.id, chunk=index.metadata[candidate.id], score=candidate.score)
            )
            processed.add(candidate.id)
        processed.add(chunk_id)

        groups.append(
            DuplicateGroup(
                members=members,
                avg_similarity=_average([c.score for c in candidates]),
                kind=chunk.kind,
            )
        )

    groups.sort(key=lambda g: (len(g.members), g.avg_similarity), reverse=True)
    return groups


def find_similar_to_location(
    index: VectorIndex,
    file_path: str,
    line: int,
    threshold: float = 0.5,
    top_k: int = 10,
    search: Optional[SimilaritySearch] = None,
) -> List[QueryResult]:
    """Chunks similar to the first chunk of ``file_path`` that contains ``line``."""
    chunk_ids = index.chunks_at(file_path, line)
    if not chunk_ids:
        return []
    search = search or BruteForceSearch()
    return search.query(index, chunk_ids[0], threshold, top_k=top_k)
