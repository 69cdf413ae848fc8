"""Abstract index storage interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional, Sequence

from ..core.models import StoredChunk
from .index_store import VectorIndex


class IndexStore(ABC):
    """Abstract base class for semantic index storage backends."""

    @abstractmethod
    def save(
        self,
        metadata: Mapping[str, StoredChunk],
        vectors: Mapping[str, Sequence[float]],
        manifest: Dict,
    ) -> VectorIndex:
        """Replace the stored index with the given chunks and vectors."""
        pass

    @abstractmethod
    def load(self) -> Optional[VectorIndex]:
        """Load the index; None when it does not exist or cannot be trusted."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Check whether an index has been written."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored index."""
        pass

    def count(self) -> int:
        """Count indexed chunks (default implementation)."""
        index = self.load()
        return len(index.metadata) if index is not None else 0
