from typing import Optional

from ..errors import ConfigError
from .base import LLM
from .ollama import OllamaLLM
from .openai import OpenAIChatLLM


def make_llm(
    backend: str = "ollama",
    model: Optional[str] = None,
    endpoint: Optional[str] = None,
    api_key: Optional[str] = None,
) -> LLM:
    backend = (backend or "ollama").lower()

    if backend == "ollama":
        return OllamaLLM(model=model or "llama3.1:8b", endpoint=endpoint)
    if backend == "openai":
        if not api_key:
            raise ConfigError("openai backend selected but OPENAI_API_KEY is not set")
        return OpenAIChatLLM(api_key=api_key, base_url=endpoint, model=model)

    raise ConfigError(f"Unsupported LLM backend: {backend}")
