from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class LLM(ABC):
    @abstractmethod
    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Return the assistant's text reply. Raise ProviderError on failure."""
        ...
