from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from typing import List, Tuple

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from ..errors import ExtractionError
from .clean import normalize_page_text

logger = logging.getLogger(__name__)


class Extractor(ABC):
    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> List[Tuple[int, str]]:
        """Return (page_number, text) pairs in page order; page numbers are 1-based."""
        ...


class PypdfExtractor(Extractor):
    """Per-page text via pypdf. Blank pages and pages that fail to extract are skipped."""

    def extract(self, pdf_bytes: bytes) -> List[Tuple[int, str]]:
        if not pdf_bytes:
            raise ExtractionError("empty PDF input")
        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            pages = list(reader.pages)
        except (PyPdfError, ValueError, KeyError, TypeError) as e:
            raise ExtractionError(f"Failed to read PDF: {e}") from e

        out: List[Tuple[int, str]] = []
        for i, page in enumerate(pages, start=1):
            try:
                txt = page.extract_text() or ""
            except Exception as e:  # one broken page must not sink the document
                logger.warning("text extraction failed on page %d: %s", i, e)
                continue
            txt = normalize_page_text(txt)
            if txt:
                out.append((i, txt))
        logger.debug("extracted %d non-blank pages of %d", len(out), len(pages))
        return out
