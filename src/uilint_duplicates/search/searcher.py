"""Brute-force cosine similarity search."""

from __future__ import annotations

import logging
from typing import Collection, List, Optional, Sequence, Union

import numpy as np

from ..core.models import QueryResult
from ..storage.index_store import VectorIndex
from .base import SimilaritySearch

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero norm."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vector dimension mismatch: {va.shape[0]} vs {vb.shape[0]}")
    norm = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def cosine_scores(matrix: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """Cosine similarity of every row of ``matrix`` with ``vector``."""
    rows = matrix.astype(np.float64, copy=False)
    q = vector.astype(np.float64, copy=False)
    denom = np.linalg.norm(rows, axis=1) * float(np.linalg.norm(q))
    dots = rows @ q
    return np.divide(dots, denom, out=np.zeros_like(dots), where=denom > 0)


class BruteForceSearch(SimilaritySearch):
    """Scores the query against every stored vector."""

    def query_vector(
        self,
        index: VectorIndex,
        vector: Sequence[float],
        threshold: float,
        top_k: Optional[int] = None,
        exclude: Union[str, Collection[str], None] = None,
    ) -> List[QueryResult]:
        if len(index) == 0:
            return []

        q = np.asarray(vector, dtype=np.float64).reshape(-1)
        if q.shape[0] != index.dimension:
            logger.warning(
                f"Query vector has dimension {q.shape[0]}, index has {index.dimension}; no results"
            )
            return []

        if exclude is None:
            excluded = frozenset()
        elif isinstance(exclude, str):
            excluded = frozenset((exclude,))
        else:
            excluded = frozenset(exclude)

        scores = cosine_scores(index.vectors, q)
        # stable, so equal scores keep row order
        order = np.argsort(-scores, kind="stable")

        results: List[QueryResult] = []
        for row in order:
            score = float(scores[row])
            if score < threshold:
                break
            chunk_id = index.ids[row]
            if chunk_id in excluded:
                continue
            results.append(QueryResult(id=chunk_id, score=score))
            if top_k is not None and len(results) >= top_k:
                break
        return results
