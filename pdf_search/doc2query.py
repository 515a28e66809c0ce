"""
Synthetic search questions for a chunk (doc2query).

Questions are embedded and indexed next to the chunk they came from so that
question-style queries find it even when they share little wording with it.
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import List

from .llm.base import LLM

logger = logging.getLogger(__name__)

PROMPT_CHAR_LIMIT = 1200
SUMMARY_WORDS = 12

SYSTEM_PROMPT = "You generate concise, diverse search questions."

_TEMPLATES = [
    "What does this say about: {s}?",
    "Explain the key points about {s}.",
    "Where in the document does it discuss: {s}?",
    "Provide a brief overview of {s}.",
    "How does this section relate to {s}?",
]

_BULLET_RE = re.compile(r"^[-*\d.)\s]+")


class QuestionGenerator(ABC):
    @abstractmethod
    def generate(self, text: str, max_count: int) -> List[str]:
        """Up to `max_count` questions; fewer (or none) is valid."""
        ...


def _summarize(text: str, max_words: int = SUMMARY_WORDS) -> str:
    words = re.sub(r"\n+", " ", text).split()
    return " ".join(w.lower() for w in words[: max(3, max_words)])


class SimpleQuestionGenerator(QuestionGenerator):
    """Offline fallback: fills generic templates with the chunk's opening words."""

    def generate(self, text: str, max_count: int) -> List[str]:
        t = (text or "").strip()
        n = max(0, int(max_count))
        if n == 0 or not t:
            return []
        summary = _summarize(t)
        return [tpl.format(s=summary) for tpl in _TEMPLATES[:n]]


def build_prompt(text: str, n: int) -> str:
    t = (text or "").strip()[:PROMPT_CHAR_LIMIT]
    return (
        f"Given the following document chunk, generate {n} diverse, concise, natural-language "
        "search questions a user might ask to find this content. "
        "Output one question per line without numbering.\n\nChunk:\n" + t
    )


def parse_question_lines(raw: str, n: int) -> List[str]:
    if not raw or not raw.strip():
        return []
    out: List[str] = []
    for line in raw.splitlines():
        s = _BULLET_RE.sub("", line.strip()).strip()
        if s:
            out.append(s)
        if len(out) >= n:
            break
    if not out:
        out.append(raw.strip())
    return out[:n]


class LLMQuestionGenerator(QuestionGenerator):
    def __init__(self, llm: LLM, temperature: float = 0.3):
        self.llm = llm
        self.temperature = temperature

    def generate(self, text: str, max_count: int) -> List[str]:
        n = max(0, int(max_count))
        if n == 0:
            return []
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(text, n)},
        ]
        raw = self.llm.chat(messages, temperature=self.temperature)
        questions = parse_question_lines(raw, n)
        logger.debug("doc2query produced %d/%d questions", len(questions), n)
        return questions
