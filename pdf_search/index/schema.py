from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

CHUNK = "chunk"
QUESTION = "question"


class Chunk(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    page_number: int = Field(ge=1)   # 1-based, as reported by the extractor

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("chunk text must not be blank")
        return v


class IndexRecord(BaseModel):
    id: str
    vector: List[float]
    text: str
    metadata: Dict[str, Any]   # filename, page, type, chunkId | parentChunkId + questionIndex


class CollectionMapping(BaseModel):
    name: str
    external_id: str


class SearchResult(BaseModel):
    id: str
    text: str
    score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class IndexReport(BaseModel):
    filename: str
    pages: int = 0
    chunks: int = 0
    questions: int = 0
    collection_id: str | None = None   # None when nothing was upserted

    @property
    def records(self) -> int:
        return self.chunks + self.questions
