from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from ..errors import ProviderError
from .base import LLM


class OpenAIChatLLM(LLM):
    """/v1/chat/completions against OpenAI or a compatible gateway."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: tuple[float, float] = (15.0, 45.0),
    ) -> None:
        if not api_key or not api_key.strip():
            raise ProviderError("OPENAI_API_KEY is blank")
        base = (base_url or "https://api.openai.com").strip().rstrip("/")
        self.api_key = api_key
        self.url = base + "/v1/chat/completions"
        self.model = model or "gpt-4o-mini"
        self.timeout = timeout

    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        payload: Dict[str, Any] = {"model": self.model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = float(temperature)
        if max_tokens is not None:
            payload["max_tokens"] = int(max_tokens)
        try:
            r = requests.post(
                self.url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"Failed calling OpenAI chat API: {e}") from e
        if r.status_code // 100 != 2:
            raise ProviderError(f"OpenAI chat API failed: {r.status_code}: {r.text[:300]}")
        try:
            choices = (r.json() or {}).get("choices") or []
        except ValueError as e:
            raise ProviderError("OpenAI chat API returned non-JSON body") from e
        if not choices:
            return ""
        return ((choices[0] or {}).get("message") or {}).get("content") or ""
