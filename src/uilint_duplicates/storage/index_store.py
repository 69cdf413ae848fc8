"""File-based semantic index: chunk metadata, row ids and binary float32 vectors.

Layout of the index directory:

- ``manifest.json``: presence means the index exists
- ``metadata.json``: chunk id -> stored chunk fields (flat, or ``{"entries": ...}``)
- ``ids.json``: ordered chunk ids, the row order of ``embeddings.bin``
- ``embeddings.bin``: ``<II`` header (dimension, count), then count*dimension ``<f4``
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import struct
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from ..core.models import StoredChunk

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"
METADATA_FILE = "metadata.json"
IDS_FILE = "ids.json"
EMBEDDINGS_FILE = "embeddings.bin"

MANIFEST_VERSION = 1

HEADER = struct.Struct("<II")
FLOAT32_LE = np.dtype("<f4")


class CorruptIndexError(Exception):
    """An index artifact is missing, unparsable or inconsistent."""


def build_file_to_chunks(metadata: Mapping[str, StoredChunk]) -> Dict[str, List[str]]:
    """Group chunk ids by the file they came from."""
    file_to_chunks: Dict[str, List[str]] = {}
    for chunk_id, chunk in metadata.items():
        file_to_chunks.setdefault(chunk.file_path, []).append(chunk_id)
    return file_to_chunks


@dataclasses.dataclass
class VectorIndex:
    """An index loaded in memory.

    ``vectors`` is a (count, dimension) float32 matrix whose rows follow ``ids``.
    Chunks whose embedding failed have metadata but no row.
    """

    metadata: Dict[str, StoredChunk]
    ids: List[str]
    vectors: np.ndarray
    manifest: Dict = dataclasses.field(default_factory=dict)
    file_to_chunks: Dict[str, List[str]] = dataclasses.field(init=False)
    _rows: Dict[str, int] = dataclasses.field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._rows = {chunk_id: row for row, chunk_id in enumerate(self.ids)}
        self.file_to_chunks = build_file_to_chunks(self.metadata)

    def __len__(self) -> int:
        return len(self.ids)

    @property
    def dimension(self) -> int:
        return int(self.vectors.shape[1]) if self.vectors.ndim == 2 else 0

    def vector(self, chunk_id: str) -> Optional[np.ndarray]:
        row = self._rows.get(chunk_id)
        if row is None:
            return None
        return self.vectors[row]

    def has_vector(self, chunk_id: str) -> bool:
        return chunk_id in self._rows

    def chunks_at(self, file_path: str, line: int) -> List[str]:
        """Ids of the chunks of ``file_path`` whose line span contains ``line``."""
        return [
            chunk_id
            for chunk_id in self.file_to_chunks.get(file_path, [])
            if self.metadata[chunk_id].start_line <= line <= self.metadata[chunk_id].end_line
        ]

    def vector_map(self) -> Dict[str, List[float]]:
        return {chunk_id: self.vectors[row].tolist() for chunk_id, row in self._rows.items()}


# -----------------------------------------------------------------------------
# Encoding
# -----------------------------------------------------------------------------

def stack_vectors(ids: Sequence[str], vectors: Mapping[str, Sequence[float]]) -> np.ndarray:
    """Stack vectors in ``ids`` order into a float32 matrix.

    Raises:
        ValueError: If the vectors do not all share one dimension
    """
    if not ids:
        return np.zeros((0, 0), dtype=np.float32)

    dimension = len(vectors[ids[0]])
    for chunk_id in ids:
        if len(vectors[chunk_id]) != dimension:
            raise ValueError(
                f"Vector dimension mismatch for chunk {chunk_id}: "
                f"expected {dimension}, got {len(vectors[chunk_id])}"
            )
    return np.asarray([vectors[chunk_id] for chunk_id in ids], dtype=np.float32).reshape(len(ids), dimension)


def encode_vectors(matrix: np.ndarray) -> bytes:
    count = int(matrix.shape[0]) if matrix.ndim == 2 else 0
    dimension = int(matrix.shape[1]) if count else 0
    header = HEADER.pack(dimension, count)
    if not count:
        return header
    return header + np.ascontiguousarray(matrix, dtype=FLOAT32_LE).tobytes()


def decode_vectors(buffer: bytes, expected_count: int) -> np.ndarray:
    """Decode ``embeddings.bin``.

    Raises:
        CorruptIndexError: If the header or the payload size disagree with the ids
    """
    if len(buffer) < HEADER.size:
        raise CorruptIndexError(f"{EMBEDDINGS_FILE} is shorter than its {HEADER.size}-byte header")

    dimension, count = HEADER.unpack_from(buffer, 0)
    if count != expected_count:
        raise CorruptIndexError(
            f"{EMBEDDINGS_FILE} declares {count} vectors but {IDS_FILE} lists {expected_count} ids"
        )
    if count == 0:
        return np.zeros((0, dimension), dtype=np.float32)

    needed = HEADER.size + count * dimension * FLOAT32_LE.itemsize
    if len(buffer) < needed:
        raise CorruptIndexError(
            f"{EMBEDDINGS_FILE} is truncated: {len(buffer)} bytes, header requires {needed}"
        )

    flat = np.frombuffer(buffer, dtype=FLOAT32_LE, count=count * dimension, offset=HEADER.size)
    return flat.astype(np.float32).reshape(count, dimension)


def decode_metadata(data) -> Dict[str, StoredChunk]:
    """Normalise the flat and ``{"entries": ...}`` forms of ``metadata.json``."""
    if not isinstance(data, dict):
        raise CorruptIndexError(f"{METADATA_FILE} must contain a JSON object")
    if isinstance(data.get("entries"), dict):
        data = data["entries"]

    metadata: Dict[str, StoredChunk] = {}
    for chunk_id, entry in data.items():
        try:
            metadata[chunk_id] = StoredChunk.from_dict(entry)
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptIndexError(f"Invalid metadata entry {chunk_id!r}: {e}") from e
    return metadata


# -----------------------------------------------------------------------------
# Read / write
# -----------------------------------------------------------------------------

def _atomic_write(path: Path, data: bytes) -> None:
    tmp = path.with_name(path.name + ".tmp")
    with tmp.open("wb") as f:
        f.write(data)
    os.replace(tmp, path)


def _json_bytes(data, indent: Optional[int] = None) -> bytes:
    return json.dumps(data, indent=indent, ensure_ascii=False).encode("utf-8")


def write_index(
    index_dir: Path,
    metadata: Mapping[str, StoredChunk],
    vectors: Mapping[str, Sequence[float]],
    manifest: Dict,
) -> VectorIndex:
    """Replace the index in ``index_dir`` with the given chunks and vectors.

    The manifest is removed first and written last, so readers never take a
    half-written directory for an index.

    Raises:
        ValueError: If the vectors do not all share one dimension
    """
    ids = [chunk_id for chunk_id in vectors]
    matrix = stack_vectors(ids, vectors)

    index_dir.mkdir(parents=True, exist_ok=True)
    manifest_path = index_dir / MANIFEST_FILE
    if manifest_path.exists():
        manifest_path.unlink()

    _atomic_write(index_dir / IDS_FILE, _json_bytes(ids))
    _atomic_write(index_dir / EMBEDDINGS_FILE, encode_vectors(matrix))
    _atomic_write(
        index_dir / METADATA_FILE,
        _json_bytes({chunk_id: chunk.to_dict() for chunk_id, chunk in metadata.items()}, indent=2),
    )

    manifest = dict(manifest)
    manifest.setdefault("version", MANIFEST_VERSION)
    manifest["dimension"] = int(matrix.shape[1]) if len(ids) else 0
    manifest["chunkCount"] = len(metadata)
    manifest["vectorCount"] = len(ids)
    _atomic_write(manifest_path, _json_bytes(manifest, indent=2))

    logger.info(f"Wrote index with {len(metadata)} chunks and {len(ids)} vectors to {index_dir}")
    return VectorIndex(metadata=dict(metadata), ids=ids, vectors=matrix, manifest=manifest)


def index_exists(index_dir: Path) -> bool:
    return (index_dir / MANIFEST_FILE).is_file()


def _read_json(path: Path):
    if not path.is_file():
        raise CorruptIndexError(f"{path.name} is missing")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise CorruptIndexError(f"{path.name} is unreadable: {e}") from e


def read_index(index_dir: Path) -> VectorIndex:
    """Read every artifact of an index.

    Raises:
        CorruptIndexError: If anything is missing or inconsistent
    """
    manifest = _read_json(index_dir / MANIFEST_FILE)
    if not isinstance(manifest, dict):
        raise CorruptIndexError(f"{MANIFEST_FILE} must contain a JSON object")

    ids = _read_json(index_dir / IDS_FILE)
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise CorruptIndexError(f"{IDS_FILE} must be a JSON array of strings")
    if len(set(ids)) != len(ids):
        raise CorruptIndexError(f"{IDS_FILE} contains duplicate ids")

    embeddings_path = index_dir / EMBEDDINGS_FILE
    if not embeddings_path.is_file():
        raise CorruptIndexError(f"{EMBEDDINGS_FILE} is missing")
    try:
        buffer = embeddings_path.read_bytes()
    except OSError as e:
        raise CorruptIndexError(f"{EMBEDDINGS_FILE} is unreadable: {e}") from e
    vectors = decode_vectors(buffer, expected_count=len(ids))

    metadata = decode_metadata(_read_json(index_dir / METADATA_FILE))
    return VectorIndex(metadata=metadata, ids=ids, vectors=vectors, manifest=manifest)


def load_index(index_dir: Path) -> Optional[VectorIndex]:
    """Load an index, failing closed.

    Returns None when no manifest exists (the normal "no index" state) and when
    the index is corrupt or partial; never a partially decoded index.
    """
    if not index_exists(index_dir):
        logger.debug(f"No index at {index_dir}")
        return None
    try:
        index = read_index(index_dir)
    except CorruptIndexError as e:
        logger.warning(f"Ignoring corrupt index at {index_dir}: {e}")
        return None
    logger.debug(f"Loaded index from {index_dir}: {len(index.metadata)} chunks, {len(index)} vectors")
    return index


def clear_index(index_dir: Path) -> None:
    for name in (MANIFEST_FILE, IDS_FILE, EMBEDDINGS_FILE, METADATA_FILE):
        path = index_dir / name
        if path.exists():
            path.unlink()
