"""Core functionality for uilint-duplicates."""

from .models import ChunkMetadata, CodeChunk, IndexStats, QueryResult, StoredChunk
from .chunking import ChunkingOptions, DefaultChunker, chunk_file
from .embedding_input import prepare_embedding_input
from .embeddings import Embedder, OllamaEmbedder, SentenceTransformersEmbedder, make_embedder

__all__ = [
    "ChunkMetadata",
    "CodeChunk",
    "IndexStats",
    "QueryResult",
    "StoredChunk",
    "ChunkingOptions",
    "DefaultChunker",
    "chunk_file",
    "prepare_embedding_input",
    "Embedder",
    "OllamaEmbedder",
    "SentenceTransformersEmbedder",
    "make_embedder",
]
