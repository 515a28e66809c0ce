from __future__ import annotations

import logging
from typing import List, Optional

from ..doc2query import QuestionGenerator
from ..embeddings import Embedder
from ..errors import ProviderError
from ..ingest.chunker import SentenceChunker
from ..ingest.pdf import Extractor
from ..store.resolver import CollectionResolver
from .ids import chunk_id, question_id
from .schema import CHUNK, QUESTION, Chunk, IndexRecord, IndexReport

logger = logging.getLogger(__name__)


class IndexingPipeline:
    """
    PDF bytes -> pages -> sentence chunks -> embeddings (+ doc2query questions)
    -> one upsert batch per document.

    A document is indexed all-or-nothing: any extractor, embedder or question
    generator failure aborts before the store is touched.
    """

    def __init__(
        self,
        extractor: Extractor,
        embedder: Embedder,
        resolver: CollectionResolver,
        collection_name: str = "pdf-search",
        chunker: Optional[SentenceChunker] = None,
        question_generator: Optional[QuestionGenerator] = None,
        questions_per_chunk: int = 0,
    ):
        self.extractor = extractor
        self.embedder = embedder
        self.resolver = resolver
        self.collection_name = collection_name or "pdf-search"
        self.chunker = chunker or SentenceChunker()
        self.question_generator = question_generator
        self.questions_per_chunk = max(0, int(questions_per_chunk))

    @property
    def doc2query_enabled(self) -> bool:
        return self.question_generator is not None and self.questions_per_chunk > 0

    def index_document(self, pdf_bytes: bytes, filename: str = "unknown") -> IndexReport:
        pages = self.extractor.extract(pdf_bytes)
        report = IndexReport(filename=filename, pages=len(pages))

        records: List[IndexRecord] = []
        for page_number, text in pages:
            for chunk in self.chunker.chunk(text, page_number):
                chunk_rec = self._chunk_record(chunk, filename)
                records.append(chunk_rec)
                report.chunks += 1
                if self.doc2query_enabled:
                    questions = self._question_records(chunk, chunk_rec.id, filename)
                    records.extend(questions)
                    report.questions += len(questions)

        if not records:
            logger.info("%s: no text to index", filename)
            return report

        report.collection_id = self.resolver.upsert(self.collection_name, records)
        logger.info(
            "%s: indexed %d chunks and %d questions from %d pages",
            filename, report.chunks, report.questions, report.pages,
        )
        return report

    def _embed(self, text: str) -> List[float]:
        try:
            return self.embedder.embed(text)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"embedding failed: {e}") from e

    def _chunk_record(self, chunk: Chunk, filename: str) -> IndexRecord:
        cid = chunk_id(filename, chunk.page_number, chunk.text)
        return IndexRecord(
            id=cid,
            vector=self._embed(chunk.text),
            text=chunk.text,
            metadata={
                "filename": filename,
                "page": chunk.page_number,
                "type": CHUNK,
                "chunkId": cid,
            },
        )

    def _question_records(self, chunk: Chunk, parent_id: str, filename: str) -> List[IndexRecord]:
        try:
            questions = list(self.question_generator.generate(chunk.text, self.questions_per_chunk))
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"question generation failed: {e}") from e

        out: List[IndexRecord] = []
        for i, q in enumerate(questions[: self.questions_per_chunk]):
            q = (q or "").strip()
            if not q:
                continue
            out.append(
                IndexRecord(
                    id=question_id(parent_id, q),
                    vector=self._embed(q),
                    text=q,
                    metadata={
                        "filename": filename,
                        "page": chunk.page_number,
                        "type": QUESTION,
                        "parentChunkId": parent_id,
                        "questionIndex": i,
                    },
                )
            )
        return out
