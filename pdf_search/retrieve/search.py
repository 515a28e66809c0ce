from __future__ import annotations

import logging
import time
from typing import List

from ..embeddings import Embedder
from ..errors import ProviderError
from ..index.schema import SearchResult
from ..store.resolver import CollectionResolver

logger = logging.getLogger(__name__)


class QueryPipeline:
    """Embed the query and ask the store; an unknown collection yields no results."""

    def __init__(self, embedder: Embedder, resolver: CollectionResolver, collection_name: str = "pdf-search"):
        self.embedder = embedder
        self.resolver = resolver
        self.collection_name = collection_name or "pdf-search"

    def search(self, query_text: str, top_k: int = 5) -> List[SearchResult]:
        if not (query_text or "").strip():
            return []
        t0 = time.perf_counter()
        try:
            vec = self.embedder.embed(query_text)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"embedding failed: {e}") from e
        results = self.resolver.query(vec, self.collection_name, max(1, int(top_k)))
        logger.debug(
            "search %r in %r: %d results in %d ms",
            query_text, self.collection_name, len(results), int((time.perf_counter() - t0) * 1000),
        )
        return results
