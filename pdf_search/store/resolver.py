"""
Collection name -> store id resolution.

Chroma servers disagree across versions on what "create a collection that
already exists" does and on which lookup endpoints work, so resolution is:

    memory cache -> durable cache -> create (writes only)
        -> on conflict, or for reads: get-by-name -> filtered list -> full list

Every hit is written to both cache tiers. Reads never raise for a missing
collection; they resolve to None and the query returns no results.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..errors import CollectionResolutionError, ConflictError, StoreError
from ..index.schema import CollectionMapping, IndexRecord, SearchResult
from .base import VectorStore
from .cache import DurableCache, MemoryCache

logger = logging.getLogger(__name__)

Strategy = Callable[[str], Optional[str]]


def distance_to_score(distance: Optional[float]) -> float:
    """1 / (1 + d); a missing distance counts as 0."""
    d = 0.0 if distance is None else float(distance)
    return 1.0 / (1.0 + max(0.0, d))


def _first_row(res: Dict[str, Any], key: str) -> List[Any]:
    rows = res.get(key) or []
    if not rows:
        return []
    return list(rows[0] or [])


def map_query_response(res: Dict[str, Any] | None) -> List[SearchResult]:
    """Map a single-vector Chroma query response to SearchResults."""
    res = res or {}
    ids = _first_row(res, "ids")
    docs = _first_row(res, "documents")
    dists = _first_row(res, "distances")
    metas = _first_row(res, "metadatas")

    out: List[SearchResult] = []
    for i, rid in enumerate(ids):
        text = docs[i] if i < len(docs) and docs[i] is not None else ""
        dist = dists[i] if i < len(dists) else None
        meta = metas[i] if i < len(metas) and metas[i] is not None else {}
        out.append(SearchResult(id=str(rid), text=text, score=distance_to_score(dist), metadata=dict(meta)))
    return out


class CollectionResolver:
    def __init__(
        self,
        store: VectorStore,
        durable: Optional[DurableCache] = None,
        memory: Optional[MemoryCache] = None,
    ):
        self.store = store
        self.durable = durable
        self.memory = memory if memory is not None else MemoryCache()
        self._strategies: List[tuple[str, Strategy]] = [
            ("get_by_name", self._by_get),
            ("filtered_list", self._by_filtered_list),
            ("full_list", self._by_full_list),
        ]

    # ---- resolution ----
    def resolve(self, name: str, create_if_missing: bool) -> Optional[str]:
        hit = self.memory.get(name)
        if hit is not None:
            return hit.external_id

        if self.durable is not None:
            cached = self.durable.read(name)
            if cached:
                logger.debug("collection %r resolved from durable cache: %s", name, cached)
                self.memory.put(CollectionMapping(name=name, external_id=cached))
                return cached

        if create_if_missing:
            return self._create_or_lookup(name)

        cid = self.lookup_by_name(name)
        if cid is None:
            logger.info("collection %r not found; treating as empty", name)
            return None
        return self._remember(name, cid)

    def _create_or_lookup(self, name: str) -> str:
        try:
            cid = self.store.create(name)
        except ConflictError as e:
            logger.info("collection %r already exists (%s); looking it up", name, e)
        except StoreError as e:
            raise CollectionResolutionError(f"could not create collection {name!r}: {e}") from e
        else:
            logger.info("created collection %r -> %s", name, cid)
            return self._remember(name, cid)

        cid = self.lookup_by_name(name)
        if cid is None:
            raise CollectionResolutionError(
                f"collection {name!r} exists according to the store but no lookup strategy returned its id"
            )
        return self._remember(name, cid)

    def lookup_by_name(self, name: str) -> Optional[str]:
        for label, strategy in self._strategies:
            try:
                cid = strategy(name)
            except StoreError as e:
                logger.info("lookup %s for %r failed: %s", label, name, e)
                continue
            if cid:
                logger.debug("lookup %s for %r -> %s", label, name, cid)
                return cid
        return None

    def _by_get(self, name: str) -> Optional[str]:
        return self.store.get_by_name(name)

    def _by_filtered_list(self, name: str) -> Optional[str]:
        return self._scan(self.store.list(name=name), name)

    def _by_full_list(self, name: str) -> Optional[str]:
        return self._scan(self.store.list(), name)

    @staticmethod
    def _scan(pairs, name: str) -> Optional[str]:
        for n, cid in pairs or []:
            if n == name and cid:
                return str(cid)
        return None

    def _remember(self, name: str, cid: str) -> str:
        mapping = CollectionMapping(name=name, external_id=str(cid))
        self.memory.put(mapping)
        if self.durable is not None:
            self.durable.write(mapping)
        return mapping.external_id

    def forget(self, name: str) -> None:
        """Drop both cache tiers for `name`. Only called on explicit user request."""
        self.memory.pop(name)
        if self.durable is not None:
            self.durable.delete(name)

    # ---- data operations ----
    def upsert(self, name: str, records: Sequence[IndexRecord]) -> Optional[str]:
        if not records:
            return None
        # Chroma rejects a batch that repeats an id; the last record for an id wins
        records = list({r.id: r for r in records}.values())
        cid = self.resolve(name, create_if_missing=True)
        self.store.add(
            cid,
            ids=[r.id for r in records],
            embeddings=[r.vector for r in records],
            documents=[r.text for r in records],
            metadatas=[r.metadata for r in records],
        )
        logger.info("upserted %d records into %r (%s)", len(records), name, cid)
        return cid

    def query(self, vector: Sequence[float], name: str, top_k: int) -> List[SearchResult]:
        cid = self.resolve(name, create_if_missing=False)
        if cid is None:
            return []
        res = self.store.query(cid, vector, max(1, int(top_k)))
        return map_query_response(res)
