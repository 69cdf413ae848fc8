"""Shared pytest configuration and fixtures for all test suites."""

import hashlib
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import pytest

from uilint_duplicates.config import load_config
from uilint_duplicates.core.embeddings import Embedder
from uilint_duplicates.core.models import ChunkMetadata, StoredChunk
from uilint_duplicates.errors import EmbeddingError
from uilint_duplicates.storage import VectorIndex


TOKEN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*|\d+")

ENV_VARS = ("OLLAMA_URL", "UILINT_EMBED_BACKEND", "UILINT_EMBED_MODEL", "UILINT_INDEX_DIR")


class FakeEmbedder(Embedder):
    """Bag-of-tokens embedder: equal texts give equal vectors, unrelated texts are near orthogonal."""

    def __init__(self, dimension: int = 512, model_name: str = "fake-embed", fail_on: Optional[str] = None):
        self.dimension = dimension
        self.model_name = model_name
        self.fail_on = fail_on
        self.calls: List[List[str]] = []

    def _vector(self, text: str) -> List[float]:
        vec = [0.0] * self.dimension
        for tok in TOKEN.findall(text):
            h = int(hashlib.sha256(tok.encode("utf-8")).hexdigest()[:8], 16)
            vec[h % self.dimension] += 1.0
        return vec

    def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.fail_on and any(self.fail_on in t for t in texts):
            raise EmbeddingError(f"refusing to embed text containing {self.fail_on!r}")
        return [self._vector(t) for t in texts]

    @property
    def texts_embedded(self) -> int:
        return sum(len(batch) for batch in self.calls)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cfg():
    return load_config()


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def project(tmp_path):
    """Empty project root (has a package.json)."""
    root = tmp_path / "app"
    root.mkdir()
    (root / "package.json").write_text('{"name": "app"}\n', encoding="utf-8")
    return root


@pytest.fixture
def write_file(project):
    def _write(rel: str, content: str) -> Path:
        path = project / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


USER_CARD = """\
export function UserCard({ user }) {
  return (
    <div className="card">
      <img src={user.avatar} alt="" />
      <h3>{user.name}</h3>
    </div>
  );
}
"""

CLAMP = """\
export function clamp(value: number, min: number, max: number): number {
  if (value < min) return min;
  if (value > max) return max;
  return value;
}
"""


@pytest.fixture
def duplicated_project(project, write_file):
    """Two identical components in different files plus an unrelated helper."""
    write_file("src/components/UserCard.tsx", USER_CARD)
    write_file("src/legacy/UserCard.tsx", USER_CARD)
    write_file("src/utils/math.ts", CLAMP)
    return project


def stored(
    file_path: str,
    start_line: int,
    end_line: int,
    kind: str = "function",
    name: Optional[str] = None,
) -> StoredChunk:
    return StoredChunk(
        file_path=file_path,
        start_line=start_line,
        end_line=end_line,
        start_column=0,
        end_column=1,
        kind=kind,
        name=name,
        content_hash="0" * 16,
        metadata=ChunkMetadata(),
    )


@pytest.fixture
def make_index():
    """Build a VectorIndex from {id: StoredChunk} and {id: vector}."""

    def _make(metadata: Dict[str, StoredChunk], vectors: Dict[str, Sequence[float]]) -> VectorIndex:
        ids = list(vectors)
        matrix = np.asarray([vectors[i] for i in ids], dtype=np.float32)
        if not ids:
            matrix = np.zeros((0, 0), dtype=np.float32)
        return VectorIndex(metadata=dict(metadata), ids=ids, vectors=matrix)

    return _make


@pytest.fixture
def stored_chunk():
    return stored
