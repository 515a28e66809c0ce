# store/chroma.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import chromadb
from chromadb.config import Settings

from ..errors import ConflictError, NotFoundError, StoreError
from .base import VectorStore

logger = logging.getLogger(__name__)


def _classify(e: Exception, what: str) -> StoreError:
    msg = str(e)
    if "already exists" in msg or type(e).__name__ == "UniqueConstraintError":
        return ConflictError(f"{what}: {msg}")
    if "does not exist" in msg or type(e).__name__ == "NotFoundError":
        return NotFoundError(f"{what}: {msg}")
    return StoreError(f"{what}: {msg}")


class ChromaClientStore(VectorStore):
    """
    VectorStore over the chromadb client library: an embedded PersistentClient
    (persist_dir) or an HttpClient (host/port). Useful when the server speaks a
    REST dialect ChromaHttpStore does not, or for fully local use.
    """

    def __init__(self, client=None, persist_dir: str | None = None):
        if client is None:
            settings = Settings(anonymized_telemetry=False, allow_reset=True)
            client = chromadb.PersistentClient(path=persist_dir or ".chroma", settings=settings)
        self.client = client
        self._by_id: Dict[str, Any] = {}

    @classmethod
    def for_server(cls, host: str, port: int = 8000, ssl: bool = False) -> "ChromaClientStore":
        settings = Settings(anonymized_telemetry=False)
        return cls(client=chromadb.HttpClient(host=host, port=port, ssl=ssl, settings=settings))

    def _track(self, col) -> str:
        cid = str(col.id)
        self._by_id[cid] = col
        return cid

    def create(self, name: str) -> str:
        try:
            col = self.client.create_collection(name=name, metadata={"hnsw:space": "l2"})
        except Exception as e:  # chromadb raises different types per release
            raise _classify(e, f"create collection {name!r}") from e
        return self._track(col)

    def get_by_name(self, name: str) -> str:
        try:
            col = self.client.get_collection(name=name)
        except Exception as e:
            raise _classify(e, f"get collection {name!r}") from e
        return self._track(col)

    def list(self, name: Optional[str] = None) -> List[Tuple[str, str]]:
        try:
            items = self.client.list_collections()
        except Exception as e:
            raise _classify(e, "list collections") from e
        out: List[Tuple[str, str]] = []
        for item in items:
            # chromadb 0.6 returns names, other releases return Collection objects
            if isinstance(item, str):
                if name and item != name:
                    continue
                out.append((item, self.get_by_name(item)))
            elif not name or item.name == name:
                out.append((item.name, self._track(item)))
        return out

    def _collection(self, collection_id: str):
        col = self._by_id.get(collection_id)
        if col is None:
            self.list()
            col = self._by_id.get(collection_id)
        if col is None:
            raise NotFoundError(f"collection id {collection_id} does not exist")
        return col

    def add(
        self,
        collection_id: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str],
        metadatas: Sequence[Dict[str, Any]],
    ) -> Any:
        col = self._collection(collection_id)
        try:
            # upsert prevents duplicates by id (content-hash)
            col.upsert(
                ids=list(ids),
                embeddings=[list(v) for v in embeddings],
                documents=list(documents),
                metadatas=list(metadatas),
            )
        except Exception as e:
            raise _classify(e, f"upsert into {collection_id}") from e
        return True

    def query(self, collection_id: str, vector: Sequence[float], top_k: int) -> Dict[str, Any]:
        col = self._collection(collection_id)
        try:
            res = col.query(
                query_embeddings=[list(vector)],
                n_results=int(top_k),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as e:
            raise _classify(e, f"query {collection_id}") from e
        return dict(res)
