from __future__ import annotations

import logging
from functools import lru_cache
from typing import Iterator, List

from nltk.tokenize.punkt import PunktSentenceTokenizer, PunktTokenizer

from ..index.schema import Chunk

logger = logging.getLogger(__name__)

DEFAULT_MIN_CHARS = 400
DEFAULT_MAX_CHARS = 1200
MIN_CHARS_FLOOR = 100
MAX_OVER_MIN = 100


@lru_cache(maxsize=8)
def _sentence_tokenizer(language: str) -> PunktSentenceTokenizer:
    """Trained Punkt model for `language` if its data is installed, else untrained Punkt."""
    try:
        return PunktTokenizer(language)
    except LookupError:
        logger.debug("no punkt_tab model for %r; using untrained punkt segmenter", language)
        return PunktSentenceTokenizer()


class SentenceChunker:
    """
    Splits page text into sentences and greedily packs them into chunks of at
    most `target_max_chars`, then merges runs of undersized neighbours until
    they reach `target_min_chars`. A single sentence longer than the max is
    emitted on its own.
    """

    def __init__(
        self,
        target_min_chars: int = DEFAULT_MIN_CHARS,
        target_max_chars: int = DEFAULT_MAX_CHARS,
        language: str = "english",
    ) -> None:
        self.target_min_chars = max(MIN_CHARS_FLOOR, int(target_min_chars))
        self.target_max_chars = max(self.target_min_chars + MAX_OVER_MIN, int(target_max_chars))
        self.language = language

    def chunk(self, page_text: str, page_number: int) -> Iterator[Chunk]:
        text = (page_text or "").strip()
        if not text:
            return
        packed = self._pack(self.split_sentences(text))
        for piece in self._merge_small(packed):
            yield Chunk(text=piece, page_number=page_number)

    def split_sentences(self, text: str) -> List[str]:
        sents = [s.strip() for s in _sentence_tokenizer(self.language).tokenize(text)]
        sents = [s for s in sents if s]
        # segmenter found no boundary at all: the whole text is one sentence
        return sents or [text]

    def _pack(self, sentences: List[str]) -> List[str]:
        out: List[str] = []
        buf = ""
        for s in sentences:
            if not buf:
                buf = s
            elif len(buf) + 1 + len(s) <= self.target_max_chars:
                buf = buf + " " + s
            else:
                out.append(buf)
                buf = s
        if buf:
            out.append(buf)
        return out

    def _merge_small(self, pieces: List[str]) -> List[str]:
        merged: List[str] = []
        acc = ""
        for piece in pieces:
            if not acc:
                acc = piece
            elif len(acc) + 1 + len(piece) <= self.target_max_chars and len(acc) < self.target_min_chars:
                acc = acc + " " + piece
            else:
                merged.append(acc)
                acc = piece
        if acc:
            merged.append(acc)
        return merged
