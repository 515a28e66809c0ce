from __future__ import annotations

import threading
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..errors import ConflictError, NotFoundError, StoreError
from .base import VectorStore


class InMemoryStore(VectorStore):
    """
    Process-local store with Chroma semantics: squared-L2 distances, upsert by
    id, conflict on duplicate names, a batch repeating an id is rejected.
    Backs `store.backend: memory` and tests.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._names: Dict[str, str] = {}
        self._rows: Dict[str, Dict[str, Tuple[List[float], str, Dict[str, Any]]]] = {}

    def create(self, name: str) -> str:
        with self._lock:
            if name in self._names:
                raise ConflictError(f"collection {name!r} already exists")
            cid = str(uuid.uuid4())
            self._names[name] = cid
            self._rows[cid] = {}
            return cid

    def get_by_name(self, name: str) -> str:
        with self._lock:
            if name not in self._names:
                raise NotFoundError(f"collection {name!r} does not exist")
            return self._names[name]

    def list(self, name: Optional[str] = None) -> List[Tuple[str, str]]:
        with self._lock:
            return [(n, cid) for n, cid in self._names.items() if name is None or n == name]

    def _collection(self, collection_id: str):
        rows = self._rows.get(collection_id)
        if rows is None:
            raise NotFoundError(f"collection id {collection_id} does not exist")
        return rows

    def add(
        self,
        collection_id: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str],
        metadatas: Sequence[Dict[str, Any]],
    ) -> Any:
        if len(set(ids)) != len(ids):
            raise StoreError(f"duplicate ids in one upsert into {collection_id}")
        with self._lock:
            rows = self._collection(collection_id)
            for rid, vec, doc, meta in zip(ids, embeddings, documents, metadatas):
                rows[rid] = (list(vec), doc, dict(meta))
        return True

    def count(self, collection_id: str) -> int:
        with self._lock:
            return len(self._collection(collection_id))

    def query(self, collection_id: str, vector: Sequence[float], top_k: int) -> Dict[str, Any]:
        with self._lock:
            rows = list(self._collection(collection_id).items())
        if not rows:
            return {"ids": [[]], "documents": [[]], "distances": [[]], "metadatas": [[]]}
        M = np.asarray([vec for _, (vec, _, _) in rows], dtype=np.float64)
        q = np.asarray(vector, dtype=np.float64)
        dists = ((M - q) ** 2).sum(axis=1)
        order = np.argsort(dists, kind="stable")[: max(1, int(top_k))]
        picked = [rows[i] for i in order]
        return {
            "ids": [[rid for rid, _ in picked]],
            "documents": [[doc for _, (_, doc, _) in picked]],
            "distances": [[float(dists[i]) for i in order]],
            "metadatas": [[meta for _, (_, _, meta) in picked]],
        }
