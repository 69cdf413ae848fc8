"""Tests for configuration loading."""

import pytest

from uilint_duplicates.config import (
    DEFAULT_CONFIG,
    DEFAULT_INDEX_DIR,
    cfg_fingerprint,
    embedding_model_name,
    expand_pattern,
    load_config,
)
from uilint_duplicates.errors import ConfigError


class TestExpandPattern:
    def test_extension(self):
        assert expand_pattern("*.tsx") == ["*.tsx", "**/*.tsx"]

    def test_directory(self):
        assert expand_pattern("dist/**") == ["dist/**", "**/dist/**"]

    def test_already_nested(self):
        assert expand_pattern("**/*.ts") == ["**/*.ts"]

    def test_comment_and_blank(self):
        assert expand_pattern("# note") == []
        assert expand_pattern("   ") == []


class TestLoadConfig:
    def test_defaults(self, cfg):
        assert cfg["index_dir"] == DEFAULT_INDEX_DIR
        assert cfg["chunking"]["max_lines"] == 100
        assert cfg["chunking"]["min_lines"] == 3
        assert cfg["embedding"]["backend"] == "ollama"
        assert cfg["embedding"]["ollama_model"] == "nomic-embed-text"
        assert cfg["lint"]["threshold"] == 0.85
        assert "**/*.tsx" in cfg["include_globs"]
        assert "**/node_modules/**" in cfg["exclude_globs"]

    def test_defaults_not_mutated(self):
        load_config(overrides={"chunking": {"max_lines": 40}})
        assert DEFAULT_CONFIG["chunking"]["max_lines"] == 100

    def test_overrides_deep_merge(self):
        cfg = load_config(overrides={"chunking": {"max_lines": 40}})
        assert cfg["chunking"]["max_lines"] == 40
        assert cfg["chunking"]["min_lines"] == 3

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_URL", "http://ollama:11434")
        monkeypatch.setenv("UILINT_EMBED_MODEL", "mxbai-embed-large")
        monkeypatch.setenv("UILINT_INDEX_DIR", "cache/dups")
        cfg = load_config()
        assert cfg["embedding"]["ollama_url"] == "http://ollama:11434"
        assert cfg["embedding"]["ollama_model"] == "mxbai-embed-large"
        assert cfg["index_dir"] == "cache/dups"

    def test_extra_exclude_patterns(self):
        cfg = load_config(overrides={"exclude_patterns": ["generated/**"]})
        assert "**/generated/**" in cfg["exclude_globs"]
        assert "**/node_modules/**" in cfg["exclude_globs"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"chunking": {"max_lines": 0}},
            {"chunking": {"split_strategy": "none"}},
            {"embedding": {"backend": "openai"}},
            {"embedding": {"batch_size": 0}},
            {"search": {"threshold": 1.5}},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigError):
            load_config(overrides=overrides)


class TestFingerprint:
    def test_stable(self, cfg):
        assert cfg_fingerprint(cfg) == cfg_fingerprint(load_config())

    def test_chunking_changes_fingerprint(self, cfg):
        other = load_config(overrides={"chunking": {"max_lines": 50}})
        assert cfg_fingerprint(cfg) != cfg_fingerprint(other)

    def test_model_changes_fingerprint(self, cfg):
        other = load_config(overrides={"embedding": {"ollama_model": "other"}})
        assert cfg_fingerprint(cfg) != cfg_fingerprint(other)

    def test_search_settings_do_not_matter(self, cfg):
        other = load_config(overrides={"search": {"threshold": 0.5}})
        assert cfg_fingerprint(cfg) == cfg_fingerprint(other)


class TestEmbeddingModelName:
    def test_ollama(self, cfg):
        assert embedding_model_name(cfg) == "nomic-embed-text"

    def test_sentence_transformers(self):
        cfg = load_config(overrides={"embedding": {"backend": "sentence_transformers"}})
        assert embedding_model_name(cfg) == "sentence-transformers/all-MiniLM-L6-v2"
