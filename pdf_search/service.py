from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field

from .errors import PdfSearchError
from .index.pipeline import IndexingPipeline
from .index.schema import IndexReport, SearchResult
from .retrieve.search import QueryPipeline

logger = logging.getLogger(__name__)


class FolderReport(BaseModel):
    folder: str
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    elapsed_ms: int = 0
    details: List[dict] = Field(default_factory=list)


class PdfSearchService:
    def __init__(self, indexer: IndexingPipeline, searcher: QueryPipeline):
        self.indexer = indexer
        self.searcher = searcher

    @property
    def collection_name(self) -> str:
        return self.indexer.collection_name

    def index_document(self, pdf_bytes: bytes, filename: str = "unknown") -> IndexReport:
        return self.indexer.index_document(pdf_bytes, filename)

    def index_file(self, path: str | Path) -> IndexReport:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(str(path))
        return self.index_document(path.read_bytes(), path.name)

    def index_folder(self, folder: str | Path) -> FolderReport:
        """Index every *.pdf directly inside `folder`; one bad file does not stop the rest."""
        folder = Path(folder)
        report = FolderReport(folder=str(folder.resolve()))
        if not folder.is_dir():
            raise FileNotFoundError(f"PDF directory not found: {folder.resolve()}")

        t0 = time.perf_counter()
        pdfs = sorted(p for p in folder.iterdir() if p.is_file() and p.suffix.lower() == ".pdf")
        if not pdfs:
            logger.info("No PDFs found in: %s", folder.resolve())
        for path in pdfs:
            report.processed += 1
            logger.info("Indexing: %s", path.name)
            try:
                res = self.index_file(path)
            except (PdfSearchError, OSError) as e:
                logger.error("Failed to index %s: %s", path, e)
                report.failed += 1
                report.details.append({"file": path.name, "status": "error", "error": str(e)})
                continue
            report.succeeded += 1
            report.details.append({"file": path.name, "status": "ok", "records": res.records})
        report.elapsed_ms = int((time.perf_counter() - t0) * 1000)
        logger.info(
            "Indexing finished. Files processed=%d, succeeded=%d, failed=%d, took=%d ms",
            report.processed, report.succeeded, report.failed, report.elapsed_ms,
        )
        return report

    def search(self, query_text: str, top_k: int = 5) -> List[SearchResult]:
        return self.searcher.search(query_text, top_k)
