from .base import LLM
from .factory import make_llm

__all__ = ["LLM", "make_llm"]
