from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..errors import ProviderError
from .base import LLM

logger = logging.getLogger(__name__)

DEFAULT_HOST = "http://localhost:11434"


def normalize_endpoint(endpoint: Optional[str]) -> str:
    """Explicit endpoint, else $OLLAMA_HOST, else localhost; scheme added if missing."""
    host = (endpoint or os.getenv("OLLAMA_HOST") or DEFAULT_HOST).strip()
    if not host.startswith(("http://", "https://")):
        host = "http://" + host
    return host.rstrip("/")


def env_timeouts() -> Tuple[float, float]:
    # first load of a large model on CPU can take minutes
    return (
        float(os.getenv("OLLAMA_CONNECT_TIMEOUT", "10")),
        float(os.getenv("OLLAMA_READ_TIMEOUT", "600")),
    )


class OllamaLLM(LLM):
    """Non-streaming client for Ollama's /api/chat."""

    def __init__(
        self,
        model: str,
        endpoint: Optional[str] = None,
        keep_alive: Optional[str] = None,
        timeout: Optional[Tuple[float, float]] = None,
    ) -> None:
        self.model = model
        self.url = normalize_endpoint(endpoint) + "/api/chat"
        self.keep_alive = keep_alive
        self.timeout = timeout or env_timeouts()

    def _payload(
        self, messages: List[Dict[str, str]], temperature: Optional[float], max_tokens: Optional[int]
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"model": self.model, "messages": messages, "stream": False}
        if self.keep_alive:
            payload["keep_alive"] = self.keep_alive
        options = {}
        if temperature is not None:
            options["temperature"] = float(temperature)
        if max_tokens is not None:
            options["num_predict"] = int(max_tokens)
        if options:
            payload["options"] = options
        return payload

    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        logger.debug("ollama chat model=%s url=%s", self.model, self.url)
        try:
            r = requests.post(self.url, json=self._payload(messages, temperature, max_tokens), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"cannot reach Ollama at {self.url}: {e}") from e
        if r.status_code >= 400:
            raise ProviderError(f"Ollama chat HTTP {r.status_code}: {r.text[:300]}")
        try:
            data = r.json() or {}
        except ValueError as e:
            raise ProviderError(f"Ollama chat returned non-JSON from {self.url}") from e
        # {"message": {"content": ...}} from /api/chat, {"response": ...} from older servers
        message = data.get("message")
        if isinstance(message, dict) and "content" in message:
            return message["content"] or ""
        return data.get("response") or ""
