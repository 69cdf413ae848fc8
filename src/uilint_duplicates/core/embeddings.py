"""Embedding providers for semantic duplicate detection."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import requests

from ..config import embedding_model_name
from ..errors import ConfigError, EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "nomic-embed-text"


class Embedder:
    """Abstract base class for embedding models."""

    model_name: str = "unknown"

    def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed multiple texts into vectors."""
        raise NotImplementedError

    def embed_one(self, text: str) -> List[float]:
        """Embed a single text into a vector."""
        return self.embed([text])[0]

    def is_available(self) -> bool:
        return True


class SentenceTransformersEmbedder(Embedder):
    """Embedder using SentenceTransformers library."""

    def __init__(self, model_name: str) -> None:
        from sentence_transformers import SentenceTransformer  # type: ignore
        self.model_name = model_name
        self.model = SentenceTransformer(model_name)

    def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed texts using SentenceTransformers model."""
        if not texts:
            return []
        try:
            arr = self.model.encode(texts, normalize_embeddings=True, show_progress_bar=False)
        except Exception as e:
            raise EmbeddingError(f"sentence-transformers encode failed: {e}") from e
        return [row.tolist() for row in arr]


class OllamaEmbedder(Embedder):
    """Generate embeddings via Ollama's /api/embed endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_URL,
        model: str = DEFAULT_OLLAMA_MODEL,
        timeout: float = 60.0,
        batch_size: int = 10,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model_name = model
        self.timeout = timeout
        self.batch_size = max(1, batch_size)
        self.session = requests.Session()

    def _embed_request(self, texts: List[str]) -> List[List[float]]:
        try:
            response = self.session.post(
                f"{self.base_url}/api/embed",
                json={"model": self.model_name, "input": texts},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise EmbeddingError(f"Ollama embed request failed: {e}") from e
        except ValueError as e:
            raise EmbeddingError(f"Invalid Ollama embed response: {e}") from e

        embeddings = data.get("embeddings")
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Invalid Ollama embed response: expected {len(texts)} embeddings, "
                f"got {len(embeddings) if isinstance(embeddings, list) else type(embeddings).__name__}"
            )
        return embeddings

    def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed texts, in batches of ``batch_size``."""
        results: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            results.extend(self._embed_request(texts[i:i + self.batch_size]))
        return results

    def is_available(self) -> bool:
        """Check that the Ollama server answers."""
        try:
            response = self.session.get(f"{self.base_url}/api/tags", timeout=5)
            return response.ok
        except requests.RequestException:
            return False

    def is_model_available(self) -> bool:
        """Check that the configured model has been pulled."""
        try:
            response = self.session.get(f"{self.base_url}/api/tags", timeout=5)
            if not response.ok:
                return False
            models = response.json().get("models") or []
        except (requests.RequestException, ValueError):
            return False
        return any(
            m.get("name") == self.model_name or str(m.get("name", "")).startswith(f"{self.model_name}:")
            for m in models
        )

    def ensure_model(self) -> None:
        """Pull the model if the server does not have it yet.

        Raises:
            EmbeddingError: If the pull fails
        """
        if self.is_model_available():
            return
        logger.info(f"Pulling embedding model {self.model_name}...")
        try:
            response = self.session.post(
                f"{self.base_url}/api/pull",
                json={"model": self.model_name, "stream": False},
                timeout=None,
            )
        except requests.RequestException as e:
            raise EmbeddingError(f"Failed to pull model {self.model_name}: {e}") from e
        if not response.ok:
            raise EmbeddingError(f"Failed to pull model {self.model_name}: HTTP {response.status_code}")

    def embedding_dimension(self) -> int:
        """Dimension of the model's vectors, measured with a test embedding."""
        return len(self.embed_one("test"))


def make_embedder(cfg: Dict, model_name: Optional[str] = None) -> Embedder:
    """Create embedder from config.

    Args:
        cfg: Configuration dictionary
        model_name: Overrides the configured model name

    Returns:
        Embedder instance

    Raises:
        ConfigError: If backend is invalid or its dependencies are missing
    """
    emb_cfg = cfg.get("embedding", {})
    backend = str(emb_cfg.get("backend", "ollama")).strip().lower()
    model = model_name or embedding_model_name(cfg)

    if backend == "ollama":
        return OllamaEmbedder(
            base_url=emb_cfg.get("ollama_url", DEFAULT_OLLAMA_URL),
            model=model,
            timeout=float(emb_cfg.get("timeout", 60)),
            batch_size=int(emb_cfg.get("batch_size", 10)),
        )

    if backend == "sentence_transformers":
        try:
            return SentenceTransformersEmbedder(model)
        except Exception as e:
            raise ConfigError(
                "Could not load sentence-transformers. "
                "Run: pip install -U sentence-transformers"
            ) from e

    raise ConfigError(f"embedding.backend is invalid: {backend!r}")
