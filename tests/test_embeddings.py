"""Tests for the embedding providers."""

import pytest
import requests

from uilint_duplicates.config import load_config
from uilint_duplicates.core.embeddings import OllamaEmbedder, SentenceTransformersEmbedder, make_embedder
from uilint_duplicates.errors import EmbeddingError


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status_code = status
        self.ok = status < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.payload is None:
            raise ValueError("no JSON")
        return self.payload


@pytest.fixture
def embedder():
    return OllamaEmbedder(base_url="http://ollama:11434/", model="nomic-embed-text", batch_size=2)


class TestOllamaEmbedder:
    def test_batches_requests(self, embedder, monkeypatch):
        sent = []

        def post(url, json, timeout):
            sent.append((url, json))
            return FakeResponse({"embeddings": [[float(len(t))] for t in json["input"]]})

        monkeypatch.setattr(embedder.session, "post", post)
        vectors = embedder.embed(["a", "bb", "ccc"])

        assert vectors == [[1.0], [2.0], [3.0]]
        assert [body["input"] for _, body in sent] == [["a", "bb"], ["ccc"]]
        assert sent[0][0] == "http://ollama:11434/api/embed"
        assert sent[0][1]["model"] == "nomic-embed-text"

    def test_http_error(self, embedder, monkeypatch):
        monkeypatch.setattr(embedder.session, "post", lambda url, json, timeout: FakeResponse(status=500))
        with pytest.raises(EmbeddingError):
            embedder.embed(["a"])

    def test_connection_error(self, embedder, monkeypatch):
        def post(url, json, timeout):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(embedder.session, "post", post)
        with pytest.raises(EmbeddingError):
            embedder.embed_one("a")

    def test_wrong_count(self, embedder, monkeypatch):
        monkeypatch.setattr(
            embedder.session, "post", lambda url, json, timeout: FakeResponse({"embeddings": [[1.0]]})
        )
        with pytest.raises(EmbeddingError):
            embedder.embed(["a", "b"])

    def test_invalid_json(self, embedder, monkeypatch):
        monkeypatch.setattr(embedder.session, "post", lambda url, json, timeout: FakeResponse(None))
        with pytest.raises(EmbeddingError):
            embedder.embed(["a"])

    def test_is_available(self, embedder, monkeypatch):
        monkeypatch.setattr(embedder.session, "get", lambda url, timeout: FakeResponse({"models": []}))
        assert embedder.is_available()

        def get(url, timeout):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(embedder.session, "get", get)
        assert not embedder.is_available()


class TestOllamaModel:
    @pytest.mark.parametrize("name", ["nomic-embed-text", "nomic-embed-text:latest", "nomic-embed-text:v1.5"])
    def test_model_available(self, embedder, monkeypatch, name):
        tags = {"models": [{"name": "llama3:8b"}, {"name": name}]}
        monkeypatch.setattr(embedder.session, "get", lambda url, timeout: FakeResponse(tags))
        assert embedder.is_model_available()

    def test_model_missing(self, embedder, monkeypatch):
        tags = {"models": [{"name": "nomic-embed-text-v2:latest"}]}
        monkeypatch.setattr(embedder.session, "get", lambda url, timeout: FakeResponse(tags))
        assert not embedder.is_model_available()

    def test_server_down(self, embedder, monkeypatch):
        def get(url, timeout):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(embedder.session, "get", get)
        assert not embedder.is_model_available()

    def test_ensure_model_skips_pull(self, embedder, monkeypatch):
        tags = {"models": [{"name": "nomic-embed-text:latest"}]}
        monkeypatch.setattr(embedder.session, "get", lambda url, timeout: FakeResponse(tags))

        def post(url, json, timeout):
            raise AssertionError("unexpected pull")

        monkeypatch.setattr(embedder.session, "post", post)
        embedder.ensure_model()

    def test_ensure_model_pulls(self, embedder, monkeypatch):
        sent = []
        monkeypatch.setattr(embedder.session, "get", lambda url, timeout: FakeResponse({"models": []}))

        def post(url, json, timeout):
            sent.append((url, json))
            return FakeResponse({"status": "success"})

        monkeypatch.setattr(embedder.session, "post", post)
        embedder.ensure_model()
        assert sent == [("http://ollama:11434/api/pull", {"model": "nomic-embed-text", "stream": False})]

    def test_failed_pull(self, embedder, monkeypatch):
        monkeypatch.setattr(embedder.session, "get", lambda url, timeout: FakeResponse({"models": []}))
        monkeypatch.setattr(embedder.session, "post", lambda url, json, timeout: FakeResponse(status=404))
        with pytest.raises(EmbeddingError, match="Failed to pull model nomic-embed-text"):
            embedder.ensure_model()

    def test_embedding_dimension(self, embedder, monkeypatch):
        sent = []

        def post(url, json, timeout):
            sent.append(json["input"])
            return FakeResponse({"embeddings": [[0.5] * 768]})

        monkeypatch.setattr(embedder.session, "post", post)
        assert embedder.embedding_dimension() == 768
        assert sent == [["test"]]


class TestSentenceTransformersEmbedder:
    def test_encode_failure(self):
        class BrokenModel:
            def encode(self, texts, **kwargs):
                raise RuntimeError("CUDA out of memory")

        embedder = object.__new__(SentenceTransformersEmbedder)
        embedder.model_name = "all-MiniLM-L6-v2"
        embedder.model = BrokenModel()
        with pytest.raises(EmbeddingError, match="CUDA out of memory"):
            embedder.embed(["a"])


class TestMakeEmbedder:
    def test_ollama_from_config(self):
        cfg = load_config(overrides={"embedding": {"ollama_url": "http://gpu:11434", "batch_size": 4}})
        embedder = make_embedder(cfg)
        assert isinstance(embedder, OllamaEmbedder)
        assert embedder.base_url == "http://gpu:11434"
        assert embedder.batch_size == 4
        assert embedder.model_name == "nomic-embed-text"

    def test_model_override(self, cfg):
        assert make_embedder(cfg, model_name="mxbai-embed-large").model_name == "mxbai-embed-large"
