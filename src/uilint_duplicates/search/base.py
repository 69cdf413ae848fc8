"""Similarity search interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Collection, List, Optional, Sequence, Union

from ..core.models import QueryResult
from ..storage.index_store import VectorIndex


class SimilaritySearch(ABC):
    """Abstract base class for nearest-neighbour search over a loaded index."""

    @abstractmethod
    def query_vector(
        self,
        index: VectorIndex,
        vector: Sequence[float],
        threshold: float,
        top_k: Optional[int] = None,
        exclude: Union[str, Collection[str], None] = None,
    ) -> List[QueryResult]:
        """Find indexed chunks similar to a vector.

        Args:
            index: Loaded index to search
            vector: Query vector, same dimension as the index
            threshold: Minimum cosine similarity to report
            top_k: Maximum number of results (None for all)
            exclude: Chunk id(s) never reported

        Returns:
            Results with ``score >= threshold``, highest score first
        """
        raise NotImplementedError

    def query(
        self,
        index: VectorIndex,
        chunk_id: str,
        threshold: float,
        top_k: Optional[int] = None,
    ) -> List[QueryResult]:
        """Find chunks similar to an indexed chunk, never the chunk itself.

        An id that is not in the index, or has no vector, yields no results.
        """
        vector = index.vector(chunk_id)
        if vector is None:
            return []
        return self.query_vector(index, vector, threshold, top_k=top_k, exclude=chunk_id)
