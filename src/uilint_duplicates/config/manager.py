"""Configuration management for uilint-duplicates."""

from __future__ import annotations

import copy
import hashlib
import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import ConfigError


DEFAULT_INDEX_DIR = ".uilint/.duplicates-index"

DEFAULT_INCLUDE_PATTERNS: List[str] = [
    "*.ts", "*.tsx", "*.js", "*.jsx",
]

DEFAULT_EXCLUDE_PATTERNS: List[str] = [
    ".git/**",
    "node_modules/**",
    "dist/**",
    "build/**",
    ".next/**",
    "coverage/**",
    ".uilint/**",
    "__tests__/**",
    "*.test.ts", "*.test.tsx", "*.test.js", "*.test.jsx",
    "*.spec.ts", "*.spec.tsx", "*.spec.js", "*.spec.jsx",
    "*.d.ts",
]

SPLIT_STRATEGIES = ("jsx-children", "line-based")

EMBEDDING_BACKENDS = ("ollama", "sentence_transformers")

DEFAULT_CONFIG: Dict = {
    "index_dir": DEFAULT_INDEX_DIR,
    "max_file_size_kb": 512,
    "chunking": {
        "min_lines": 3,
        "max_lines": 100,
        "min_section_lines": 3,
        "include_anonymous": False,
        # None means every kind
        "kinds": None,
        "split_strategy": "jsx-children",
    },
    "embedding": {
        "backend": "ollama",
        "ollama_url": "http://localhost:11434",
        "ollama_model": "nomic-embed-text",
        "sentence_transformers_model": "sentence-transformers/all-MiniLM-L6-v2",
        "max_chars": 6000,
        "batch_size": 10,
        "workers": 1,
        "timeout": 60,
    },
    "search": {
        "threshold": 0.85,
        "top_k": 10,
        "min_group_size": 2,
    },
    "lint": {
        "threshold": 0.85,
        "min_lines": 3,
    },
}


def expand_pattern(pattern: str) -> List[str]:
    """Expand pattern to include both root and nested versions.

    Examples:
        '*.tsx' -> ['*.tsx', '**/*.tsx']
        'dist/**' -> ['dist/**', '**/dist/**']
    """
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return []

    if pattern.startswith("**/"):
        return [pattern]

    if pattern.startswith("*."):
        return [pattern, "**/" + pattern]

    if "/**" in pattern:
        return [pattern, "**/" + pattern]

    return [pattern]


def _expand_patterns(patterns: List[str]) -> List[str]:
    """Expand and deduplicate patterns while preserving order."""
    out: List[str] = []
    seen: set[str] = set()
    for p in patterns:
        for ep in expand_pattern(p):
            if ep not in seen:
                seen.add(ep)
                out.append(ep)
    return out


def _deep_merge(base: Dict, overrides: Dict) -> Dict:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def validate_config(cfg: Dict) -> None:
    """Raise ConfigError for values the pipeline cannot work with."""
    chunking = cfg["chunking"]
    if int(chunking["max_lines"]) < 1:
        raise ConfigError(f"chunking.max_lines must be positive, got {chunking['max_lines']!r}")
    if int(chunking["min_lines"]) < 1:
        raise ConfigError(f"chunking.min_lines must be positive, got {chunking['min_lines']!r}")
    if chunking["split_strategy"] not in SPLIT_STRATEGIES:
        raise ConfigError(
            f"chunking.split_strategy must be one of {SPLIT_STRATEGIES}, "
            f"got {chunking['split_strategy']!r}"
        )

    backend = str(cfg["embedding"]["backend"]).strip().lower()
    if backend not in EMBEDDING_BACKENDS:
        raise ConfigError(f"embedding.backend is invalid: {backend!r}")
    if int(cfg["embedding"]["batch_size"]) < 1:
        raise ConfigError("embedding.batch_size must be positive")
    if int(cfg["embedding"]["workers"]) < 1:
        raise ConfigError("embedding.workers must be positive")

    for section in ("search", "lint"):
        threshold = float(cfg[section]["threshold"])
        if not -1.0 <= threshold <= 1.0:
            raise ConfigError(f"{section}.threshold must be within [-1, 1], got {threshold}")


def load_config(repo: Optional[Path] = None, overrides: Optional[Dict] = None) -> Dict:
    """Load configuration.

    Starts from the defaults, applies environment overrides, then the explicit
    ``overrides`` mapping (deep-merged), and expands the file patterns.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    # Override from environment
    if os.getenv("OLLAMA_URL"):
        config["embedding"]["ollama_url"] = os.environ["OLLAMA_URL"]
    if os.getenv("UILINT_EMBED_BACKEND"):
        config["embedding"]["backend"] = os.environ["UILINT_EMBED_BACKEND"]
    if os.getenv("UILINT_EMBED_MODEL"):
        config["embedding"]["ollama_model"] = os.environ["UILINT_EMBED_MODEL"]
    if os.getenv("UILINT_INDEX_DIR"):
        config["index_dir"] = os.environ["UILINT_INDEX_DIR"]

    if overrides:
        _deep_merge(config, copy.deepcopy(overrides))

    config["include_globs"] = _expand_patterns(
        config.get("include_patterns") or DEFAULT_INCLUDE_PATTERNS
    )
    config["exclude_globs"] = _expand_patterns(
        DEFAULT_EXCLUDE_PATTERNS + list(config.get("exclude_patterns") or [])
    )

    validate_config(config)
    return config


def embedding_model_name(cfg: Dict) -> str:
    """Name of the embedding model the configured backend will use."""
    emb = cfg["embedding"]
    if str(emb["backend"]).strip().lower() == "sentence_transformers":
        return str(emb["sentence_transformers_model"])
    return str(emb["ollama_model"])


def cfg_fingerprint(cfg: Dict) -> str:
    """Generate fingerprint hash for the settings that shape chunks and vectors."""
    relevant = {
        "chunking": cfg.get("chunking", {}),
        "embedding": {
            "backend": cfg.get("embedding", {}).get("backend"),
            "model": embedding_model_name(cfg) if "embedding" in cfg else None,
            "max_chars": cfg.get("embedding", {}).get("max_chars"),
        },
    }
    payload = json.dumps(relevant, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()
