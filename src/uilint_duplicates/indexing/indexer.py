"""Offline indexing: discover, chunk, embed and persist a project."""

from __future__ import annotations

import datetime as _dt
import fnmatch
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_INCLUDE_PATTERNS, cfg_fingerprint
from ..config.manager import _expand_patterns
from ..core import CodeChunk, DefaultChunker, ChunkingOptions, Embedder, IndexStats, make_embedder
from ..core.embedding_input import prepare_embedding_input
from ..storage import IndexCache, create_index_store
from ..storage.index_store import MANIFEST_VERSION
from ..utils import is_binary_file, to_project_path
from .base import Indexer, ProgressCallback

logger = logging.getLogger(__name__)


def _match_any(path: str, globs: List[str]) -> bool:
    return any(fnmatch.fnmatch(path, g) for g in globs)


def iter_files(project_root: Path, cfg: Dict) -> Iterable[Path]:
    """Source files to index, in a stable order.

    Excluded directories are pruned without being walked.
    """
    include_globs = cfg.get("include_globs", _expand_patterns(DEFAULT_INCLUDE_PATTERNS))
    exclude_globs = cfg.get("exclude_globs", _expand_patterns(DEFAULT_EXCLUDE_PATTERNS))
    max_kb = int(cfg.get("max_file_size_kb", 512))
    root = Path(project_root)

    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"
        dirnames[:] = sorted(d for d in dirnames if not _match_any(prefix + d + "/", exclude_globs))

        for name in sorted(filenames):
            rel = prefix + name
            if _match_any(rel, exclude_globs):
                continue
            if not _match_any(rel, include_globs):
                continue
            p = Path(dirpath) / name
            try:
                if (p.stat().st_size / 1024.0) > max_kb:
                    logger.debug(f"Skipping {rel}: larger than {max_kb} KB")
                    continue
            except OSError:
                continue
            if is_binary_file(p):
                continue
            yield p


def _utc_now() -> str:
    now = _dt.datetime.now(_dt.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _batches(items: Sequence, size: int) -> List[Sequence]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def _embed_batch(embedder: Embedder, batch: Sequence[CodeChunk], max_chars: int) -> Dict[str, List[float]]:
    """Embed one batch; on failure retry chunk by chunk so one bad chunk loses only itself."""
    texts = [prepare_embedding_input(c, max_chars) for c in batch]
    try:
        return {c.id: list(v) for c, v in zip(batch, embedder.embed(texts))}
    except Exception as e:
        if len(batch) == 1:
            logger.warning(f"Failed to embed {batch[0].file_path}:{batch[0].start_line}: {e}")
            return {}
        logger.warning(f"Batch embedding failed, retrying {len(batch)} chunks one by one: {e}")

    vectors: Dict[str, List[float]] = {}
    for chunk, text in zip(batch, texts):
        try:
            vectors[chunk.id] = list(embedder.embed_one(text))
        except Exception as e:
            logger.warning(f"Failed to embed {chunk.file_path}:{chunk.start_line}: {e}")
    return vectors


class DefaultIndexer(Indexer):

    def __init__(self, embedder: Optional[Embedder] = None, cache: Optional[IndexCache] = None) -> None:
        self.embedder = embedder
        self.cache = cache

    def _embed(
        self,
        embedder: Embedder,
        chunks: List[CodeChunk],
        cfg: Dict,
        progress: Optional[ProgressCallback],
    ) -> Dict[str, List[float]]:
        emb_cfg = cfg.get("embedding", {})
        max_chars = int(emb_cfg.get("max_chars", 6000))
        batches = _batches(chunks, int(emb_cfg.get("batch_size", 10)))
        workers = int(emb_cfg.get("workers", 1))

        vectors: Dict[str, List[float]] = {}
        done = 0
        if workers > 1 and len(batches) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                for batch, result in zip(batches, pool.map(lambda b: _embed_batch(embedder, b, max_chars), batches)):
                    vectors.update(result)
                    done += len(batch)
                    if progress:
                        progress("Embedding chunks", done, len(chunks))
        else:
            for batch in batches:
                vectors.update(_embed_batch(embedder, batch, max_chars))
                done += len(batch)
                if progress:
                    progress("Embedding chunks", done, len(chunks))
        return vectors

    def index(
        self,
        project_root: Path,
        cfg: Dict,
        force: bool = False,
        progress: Optional[ProgressCallback] = None,
    ) -> IndexStats:
        started = time.perf_counter()
        root = Path(project_root).resolve()
        stats = IndexStats()

        embedder = self.embedder or make_embedder(cfg)
        store = create_index_store(cfg, root)
        fingerprint = cfg_fingerprint(cfg)

        previous = None if force else store.load()
        reusable: Dict[str, List[float]] = {}
        if previous is not None:
            prev_manifest = previous.manifest
            if (
                prev_manifest.get("embeddingModel") == embedder.model_name
                and prev_manifest.get("configFingerprint") == fingerprint
            ):
                reusable = previous.vector_map()
            else:
                logger.info("Embedding model or settings changed, re-embedding every chunk")

        if progress:
            progress("Discovering files", None, None)
        files = list(iter_files(root, cfg))
        stats.files_discovered = len(files)
        logger.info(f"Indexing {len(files)} files under {root}")

        chunker = DefaultChunker(ChunkingOptions.from_config(cfg))
        chunks: Dict[str, CodeChunk] = {}
        for i, path in enumerate(files, start=1):
            rel = to_project_path(path, root)
            if progress:
                progress(f"Chunking {rel}", i, len(files))
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.warning(f"Failed to read {rel}: {e}")
                stats.files_failed += 1
                continue
            for chunk in chunker.chunk(rel, text):
                chunks[chunk.id] = chunk
            stats.files_indexed += 1

        stats.chunks_created = len(chunks)

        pending = [c for c in chunks.values() if c.id not in reusable]
        stats.chunks_reused = len(chunks) - len(pending)
        if stats.chunks_reused:
            logger.info(f"Reusing {stats.chunks_reused} unchanged embeddings")

        embedded = self._embed(embedder, pending, cfg, progress) if pending else {}
        stats.chunks_embedded = len(embedded)
        stats.chunks_failed = len(pending) - len(embedded)

        vectors: Dict[str, List[float]] = {}
        for chunk_id in chunks:
            if chunk_id in embedded:
                vectors[chunk_id] = embedded[chunk_id]
            elif chunk_id in reusable:
                vectors[chunk_id] = reusable[chunk_id]

        now = _utc_now()
        created_at = previous.manifest.get("createdAt") if previous is not None else None
        manifest = {
            "version": MANIFEST_VERSION,
            "createdAt": created_at or now,
            "updatedAt": now,
            "embeddingModel": embedder.model_name,
            "fileCount": len({c.file_path for c in chunks.values()}),
            "configFingerprint": fingerprint,
        }

        if progress:
            progress("Writing index", None, None)
        store.save({cid: c.to_stored() for cid, c in chunks.items()}, vectors, manifest)
        if self.cache is not None:
            self.cache.invalidate(root)

        stats.elapsed_seconds = time.perf_counter() - started
        logger.info(
            f"Indexed {stats.chunks_created} chunks from {stats.files_indexed} files "
            f"({stats.chunks_embedded} embedded, {stats.chunks_reused} reused, "
            f"{stats.chunks_failed} failed) in {stats.elapsed_seconds:.1f}s"
        )
        return stats


def build_index(
    project_root: Path,
    cfg: Dict,
    force: bool = False,
    progress: Optional[ProgressCallback] = None,
    embedder: Optional[Embedder] = None,
    cache: Optional[IndexCache] = None,
) -> IndexStats:
    """Build or refresh the semantic index of a project (Wrapper)."""
    indexer = DefaultIndexer(embedder=embedder, cache=cache)
    return indexer.index(project_root, cfg, force=force, progress=progress)
