"""Content-addressed identifiers for chunks and their synthetic questions.

Ids only depend on (filename, page, text), so indexing the same document
twice produces the same ids and the store replaces instead of duplicating.
"""
from __future__ import annotations

import hashlib
import json

QUESTION_HASH_CHARS = 16


def _sha256(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def chunk_id(filename: str, page_number: int, text: str) -> str:
    # JSON array keeps field boundaries explicit: ("a", 1, "bc") != ("a1", ..., "c")
    identity = json.dumps([filename, int(page_number), text], ensure_ascii=False)
    return _sha256(identity)


def question_id(parent_chunk_id: str, question: str) -> str:
    return f"{parent_chunk_id}-q-{_sha256(question)[:QUESTION_HASH_CHARS]}"
