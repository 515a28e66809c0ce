# store/http.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from ..errors import ConflictError, NotFoundError, StoreError
from .base import VectorStore

logger = logging.getLogger(__name__)

# (connect timeout, read timeout)
TIMEOUT = (5.0, 10.0)


def _trunc(s: str | None) -> str:
    if not s:
        return ""
    return s if len(s) <= 300 else s[:300] + "…"


class ChromaHttpStore(VectorStore):
    """
    Thin REST client for a Chroma server.

    api_version "v1" talks to /api/v1/collections (Chroma <= 0.5);
    "v2" to /api/v2/tenants/{tenant}/databases/{database}/collections.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        api_version: str = "v1",
        tenant: str = "default_tenant",
        database: str = "default_database",
        timeout: tuple[float, float] = TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        if api_version == "v2":
            self.collections_url = (
                f"{self.base_url}/api/v2/tenants/{tenant}/databases/{database}/collections"
            )
        else:
            self.collections_url = f"{self.base_url}/api/v1/collections"
        self.timeout = timeout
        self.http = session or requests.Session()

    # ---- transport ----
    def _request(self, method: str, url: str, **kwargs) -> Tuple[int, Any, str]:
        logger.debug("%s %s", method, url)
        try:
            r = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise StoreError(f"HTTP call to Chroma failed: {method} {url}: {e}") from e
        body = r.text or ""
        logger.debug("<-- %s from %s: %s", r.status_code, url, _trunc(body))
        if not body.strip():
            return r.status_code, None, body
        try:
            data = r.json()
        except ValueError:
            # some endpoints (e.g. /add) answer with a bare `true` or plain text
            logger.debug("non-JSON response from %s ignored", url)
            data = None
        return r.status_code, data, body

    @staticmethod
    def _raise_for(status: int, body: str, what: str) -> None:
        if 200 <= status < 300:
            return
        if status == 404 or "does not exist" in body or "NotFoundError" in body:
            raise NotFoundError(f"{what}: not found (HTTP {status})", status=status)
        if status == 409 or "already exists" in body or "UniqueConstraintError" in body:
            raise ConflictError(f"{what}: already exists (HTTP {status})", status=status)
        raise StoreError(f"Chroma HTTP {status} for {what}: {_trunc(body)}", status=status)

    @staticmethod
    def _collection_id(data: Any) -> Optional[str]:
        if isinstance(data, dict) and data.get("id"):
            return str(data["id"])
        return None

    # ---- VectorStore ----
    def create(self, name: str) -> str:
        status, data, body = self._request("POST", self.collections_url, json={"name": name})
        self._raise_for(status, body, f"create collection {name!r}")
        cid = self._collection_id(data)
        if cid is None:
            raise StoreError(f"Chroma create collection did not return id: {_trunc(body)}")
        return cid

    def get_by_name(self, name: str) -> str:
        status, data, body = self._request("GET", f"{self.collections_url}/{name}")
        self._raise_for(status, body, f"get collection {name!r}")
        cid = self._collection_id(data)
        if cid is None:
            raise NotFoundError(f"get collection {name!r} returned no id")
        return cid

    def list(self, name: Optional[str] = None) -> List[Tuple[str, str]]:
        params = {"name": name} if name else None
        status, data, body = self._request("GET", self.collections_url, params=params)
        self._raise_for(status, body, "list collections")
        # plain list, or {"collections": [...]} from some gateways
        items = data.get("collections") if isinstance(data, dict) else data
        out: List[Tuple[str, str]] = []
        for item in items or []:
            if isinstance(item, dict) and item.get("name") and item.get("id"):
                out.append((str(item["name"]), str(item["id"])))
        return out

    def add(
        self,
        collection_id: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str],
        metadatas: Sequence[Dict[str, Any]],
    ) -> Any:
        payload = {
            "ids": list(ids),
            "embeddings": [[float(x) for x in v] for v in embeddings],
            "documents": list(documents),
            "metadatas": list(metadatas),
        }
        # /upsert rather than /add: re-indexed ids must replace, and /add ignores existing ids
        url = f"{self.collections_url}/{collection_id}/upsert"
        status, data, body = self._request("POST", url, json=payload)
        self._raise_for(status, body, f"upsert into {collection_id}")
        return data

    def query(self, collection_id: str, vector: Sequence[float], top_k: int) -> Dict[str, Any]:
        payload = {
            "query_embeddings": [[float(x) for x in vector]],
            "n_results": int(top_k),
            "include": ["documents", "metadatas", "distances"],
        }
        url = f"{self.collections_url}/{collection_id}/query"
        status, data, body = self._request("POST", url, json=payload)
        self._raise_for(status, body, f"query {collection_id}")
        return data if isinstance(data, dict) else {}
