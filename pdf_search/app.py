from __future__ import annotations

import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml

from .doc2query import LLMQuestionGenerator, QuestionGenerator, SimpleQuestionGenerator
from .embeddings import Embedder, FastEmbedEmbedder, HashingEmbedder, OllamaEmbedder, OpenAIEmbedder
from .errors import ConfigError
from .index.pipeline import IndexingPipeline
from .ingest.chunker import SentenceChunker
from .ingest.pdf import PypdfExtractor
from .llm.factory import make_llm
from .retrieve.search import QueryPipeline
from .service import PdfSearchService
from .store.base import VectorStore
from .store.cache import DurableCache
from .store.http import ChromaHttpStore
from .store.memory import InMemoryStore
from .store.resolver import CollectionResolver

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "collection": "pdf-search",
    "store": {
        "backend": "http",            # http | chroma | memory
        "url": "http://localhost:8000",
        "api_version": "v1",          # v1 | v2
        "tenant": "default_tenant",
        "database": "default_database",
        "timeout": [5.0, 10.0],
        "persist_dir": ".chroma",     # chroma backend; empty -> connect to url
    },
    "cache": {"dir": "~/.cache/pdf-search/collections"},
    "chunking": {"min_chars": 400, "max_chars": 1200, "language": "english"},
    "embedding": {"backend": "auto", "model": None, "dim": 256},
    "doc2query": {"enabled": True, "count": 3, "backend": "auto", "model": None},
    "openai": {"api_key": None, "base_url": "https://api.openai.com"},
    "ollama": {"host": None},
    "logging": {"level": "INFO", "json": False},
}

# env var -> (section, key); section None means top level
ENV_OVERRIDES = {
    "CHROMA_URL": ("store", "url"),
    "COLLECTION_NAME": (None, "collection"),
    "EMBED_BACKEND": ("embedding", "backend"),
    "EMBED_MODEL": ("embedding", "model"),
    "OPENAI_API_KEY": ("openai", "api_key"),
    "OPENAI_BASE_URL": ("openai", "base_url"),
    "OLLAMA_HOST": ("ollama", "host"),
    "DOC2QUERY_COUNT": ("doc2query", "count"),
    "PDF_SEARCH_CACHE_DIR": ("cache", "dir"),
}


def _deep_merge(base: dict, override: dict) -> dict:
    out = deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def apply_env(cfg: dict, env: Optional[Dict[str, str]] = None) -> dict:
    env = os.environ if env is None else env
    cfg = deepcopy(cfg)
    for var, (section, key) in ENV_OVERRIDES.items():
        val = env.get(var)
        if val is None or not val.strip():
            continue
        target = cfg if section is None else cfg.setdefault(section, {})
        target[key] = val.strip()
    # model names are backend specific; only honour them for the matching backend
    if env.get("OPENAI_EMBED_MODEL") and cfg["embedding"].get("backend") in ("auto", "openai"):
        cfg["embedding"]["model"] = env["OPENAI_EMBED_MODEL"]
    if env.get("OPENAI_DOC2QUERY_MODEL") and cfg["doc2query"].get("backend") in ("auto", "openai"):
        cfg["doc2query"]["model"] = env["OPENAI_DOC2QUERY_MODEL"]
    try:
        cfg["doc2query"]["count"] = max(0, int(cfg["doc2query"].get("count", 0)))
    except (TypeError, ValueError):
        logger.warning("invalid DOC2QUERY_COUNT %r; using 3", cfg["doc2query"].get("count"))
        cfg["doc2query"]["count"] = 3
    return cfg


def load_config(path: str | Path | None = None, env: Optional[Dict[str, str]] = None) -> dict:
    """Defaults <- YAML file (if it exists) <- environment."""
    file_cfg: dict = {}
    if path is not None and Path(path).is_file():
        with open(path, "r", encoding="utf-8") as f:
            file_cfg = yaml.safe_load(f) or {}
        if not isinstance(file_cfg, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
    return apply_env(_deep_merge(DEFAULT_CONFIG, file_cfg), env)


def _api_key(cfg: dict) -> Optional[str]:
    key = (cfg.get("openai") or {}).get("api_key")
    return key if key and str(key).strip() else None


def make_embedder(cfg: dict) -> Embedder:
    ecfg = cfg["embedding"]
    backend = (ecfg.get("backend") or "auto").lower()
    if backend == "auto":
        backend = "openai" if _api_key(cfg) else "hashing"

    if backend == "hashing":
        return HashingEmbedder(dim=int(ecfg.get("dim") or 256))
    if backend == "fastembed":
        return FastEmbedEmbedder(model=ecfg.get("model"))
    if backend == "ollama":
        return OllamaEmbedder(model=ecfg.get("model"), host=cfg["ollama"].get("host"))
    if backend == "openai":
        if not _api_key(cfg):
            raise ConfigError("embedding backend 'openai' needs OPENAI_API_KEY")
        return OpenAIEmbedder(
            api_key=_api_key(cfg), base_url=cfg["openai"].get("base_url"), model=ecfg.get("model")
        )
    raise ConfigError(f"Unsupported embedding backend: {backend}")


def make_question_generator(cfg: dict) -> Optional[QuestionGenerator]:
    dcfg = cfg["doc2query"]
    if not dcfg.get("enabled", True) or int(dcfg.get("count", 0)) <= 0:
        return None
    backend = (dcfg.get("backend") or "auto").lower()
    if backend == "auto":
        backend = "openai" if _api_key(cfg) else "simple"

    if backend == "simple":
        return SimpleQuestionGenerator()
    if backend == "ollama":
        return LLMQuestionGenerator(make_llm("ollama", model=dcfg.get("model"), endpoint=cfg["ollama"].get("host")))
    if backend == "openai":
        llm = make_llm(
            "openai", model=dcfg.get("model"), endpoint=cfg["openai"].get("base_url"), api_key=_api_key(cfg)
        )
        return LLMQuestionGenerator(llm)
    raise ConfigError(f"Unsupported doc2query backend: {backend}")


def make_store(cfg: dict) -> VectorStore:
    scfg = cfg["store"]
    backend = (scfg.get("backend") or "http").lower()
    if backend == "http":
        timeout = scfg.get("timeout") or [5.0, 10.0]
        return ChromaHttpStore(
            base_url=scfg.get("url") or "http://localhost:8000",
            api_version=scfg.get("api_version") or "v1",
            tenant=scfg.get("tenant") or "default_tenant",
            database=scfg.get("database") or "default_database",
            timeout=(float(timeout[0]), float(timeout[1])),
        )
    if backend == "chroma":
        from .store.chroma import ChromaClientStore

        if scfg.get("persist_dir"):
            return ChromaClientStore(persist_dir=scfg["persist_dir"])
        url = urlparse(scfg.get("url") or "http://localhost:8000")
        return ChromaClientStore.for_server(
            host=url.hostname or "localhost", port=url.port or 8000, ssl=url.scheme == "https"
        )
    if backend == "memory":
        return InMemoryStore()
    raise ConfigError(f"Unsupported store backend: {backend}")


def make_resolver(cfg: dict, store: Optional[VectorStore] = None) -> CollectionResolver:
    store = store or make_store(cfg)
    cache_dir = (cfg.get("cache") or {}).get("dir")
    # ids of a process-local store mean nothing to the next process
    durable = DurableCache(cache_dir) if cache_dir and not isinstance(store, InMemoryStore) else None
    return CollectionResolver(store, durable=durable)


def build_service(cfg: dict, store: Optional[VectorStore] = None) -> PdfSearchService:
    resolver = make_resolver(cfg, store)
    embedder = make_embedder(cfg)
    ccfg = cfg["chunking"]
    chunker = SentenceChunker(
        target_min_chars=int(ccfg.get("min_chars", 400)),
        target_max_chars=int(ccfg.get("max_chars", 1200)),
        language=ccfg.get("language") or "english",
    )
    generator = make_question_generator(cfg)
    collection = cfg.get("collection") or "pdf-search"
    indexer = IndexingPipeline(
        extractor=PypdfExtractor(),
        embedder=embedder,
        resolver=resolver,
        collection_name=collection,
        chunker=chunker,
        question_generator=generator,
        questions_per_chunk=int(cfg["doc2query"].get("count", 0)) if generator else 0,
    )
    searcher = QueryPipeline(embedder, resolver, collection)
    logger.debug(
        "service: store=%s embedder=%s doc2query=%s collection=%s",
        type(resolver.store).__name__, type(embedder).__name__, type(generator).__name__, collection,
    )
    return PdfSearchService(indexer, searcher)
