# embeddings.py
from __future__ import annotations

import hashlib
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np
import requests

from .errors import ProviderError

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def _trunc(s: str | None, n: int = 300) -> str:
    if not s:
        return ""
    return s if len(s) <= n else s[:n] + "…"


class Embedder(ABC):
    """text -> fixed-length vector. Implementations raise ProviderError on failure."""

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        ...


class HashingEmbedder(Embedder):
    """
    Deterministic offline embedder: signed feature hashing of lowercase word
    tokens, L2-normalised. Texts sharing words land close together, which is
    enough for local runs and tests without a model download.
    """

    def __init__(self, dim: int = 256):
        self.dim = max(4, int(dim))

    def embed(self, text: str) -> List[float]:
        vec = np.zeros(self.dim, dtype=np.float64)
        for tok in _TOKEN_RE.findall((text or "").lower()):
            h = int.from_bytes(hashlib.blake2b(tok.encode("utf-8"), digest_size=8).digest(), "big")
            sign = 1.0 if (h >> 63) & 1 else -1.0
            vec[h % self.dim] += sign
        norm = float(np.linalg.norm(vec))
        if norm > 0:
            vec /= norm
        return vec.tolist()


class FastEmbedEmbedder(Embedder):
    def __init__(self, model: str | None = None):
        self.model_name = model or "BAAI/bge-small-en-v1.5"
        self._model = None

    def _ensure_model(self):
        if self._model is None:
            from fastembed import TextEmbedding

            self._model = TextEmbedding(model_name=self.model_name)
        return self._model

    def embed(self, text: str) -> List[float]:
        try:
            vecs = list(self._ensure_model().embed([text or ""]))
        except Exception as e:  # onnxruntime / model download failures
            raise ProviderError(f"fastembed failed for model {self.model_name}: {e}") from e
        return [float(x) for x in vecs[0]]


class OllamaEmbedder(Embedder):
    def __init__(self, model: str | None = None, host: str | None = None, timeout: float = 300):
        self.model = model or "nomic-embed-text"
        self.host = (host or "http://localhost:11434").rstrip("/")
        self.timeout = timeout

    def embed(self, text: str) -> List[float]:
        url = f"{self.host}/api/embeddings"
        try:
            r = requests.post(url, json={"model": self.model, "prompt": text or ""}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"cannot reach Ollama at {self.host}: {e}") from e
        if r.status_code >= 400:
            raise ProviderError(f"Ollama embeddings HTTP {r.status_code}: {_trunc(r.text)}")
        try:
            data = r.json() or {}
        except ValueError as e:
            raise ProviderError(f"Ollama embeddings returned non-JSON: {_trunc(r.text)}") from e
        # Common shapes: {"embedding": [...]} or {"embeddings": [[...]]}
        if isinstance(data.get("embedding"), list) and data["embedding"]:
            return [float(x) for x in data["embedding"]]
        if isinstance(data.get("embeddings"), list) and data["embeddings"]:
            return [float(x) for x in data["embeddings"][0]]
        raise ProviderError(f"Unexpected Ollama embeddings response: {_trunc(r.text)}")


class OpenAIEmbedder(Embedder):
    """POST {base_url}/v1/embeddings; works with OpenAI-compatible gateways."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: tuple[float, float] = (10.0, 30.0),
    ):
        if not api_key or not api_key.strip():
            raise ProviderError("OPENAI_API_KEY is blank")
        base = (base_url or "https://api.openai.com").strip()
        if not base.startswith("http"):
            raise ProviderError("OPENAI_BASE_URL must start with http/https")
        self.api_key = api_key
        self.url = base.rstrip("/") + "/v1/embeddings"
        self.model = model or "text-embedding-3-small"
        self.timeout = timeout

    def embed(self, text: str) -> List[float]:
        try:
            r = requests.post(
                self.url,
                json={"model": self.model, "input": text or ""},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"Failed calling OpenAI embeddings API: {e}") from e
        if r.status_code // 100 != 2:
            raise ProviderError(f"OpenAI embeddings API failed: {r.status_code}: {_trunc(r.text)}")
        try:
            data = (r.json() or {}).get("data")
        except ValueError as e:
            raise ProviderError("OpenAI embeddings API returned non-JSON body") from e
        if not isinstance(data, list) or not data:
            raise ProviderError("Unexpected embeddings response: missing data array")
        emb = (data[0] or {}).get("embedding")
        if not isinstance(emb, list) or not emb:
            raise ProviderError("Unexpected embeddings response: missing embedding vector")
        return [float(x) for x in emb]
