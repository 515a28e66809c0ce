from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple


class VectorStore(ABC):
    """
    Remote collection store (Chroma-shaped). Collections are addressed by an
    opaque id once created; names are only used to create and look them up.

    Errors: ConflictError from create() when the name is taken, NotFoundError
    from get_by_name() when it is not, StoreError for anything else.
    """

    @abstractmethod
    def create(self, name: str) -> str:
        ...

    @abstractmethod
    def get_by_name(self, name: str) -> str:
        ...

    @abstractmethod
    def list(self, name: Optional[str] = None) -> List[Tuple[str, str]]:
        """(name, id) pairs. `name` is a filter hint; backends may ignore it."""
        ...

    @abstractmethod
    def add(
        self,
        collection_id: str,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str],
        metadatas: Sequence[Dict[str, Any]],
    ) -> Any:
        """Insert-or-replace by id. The return value is an opaque acknowledgment."""
        ...

    @abstractmethod
    def query(self, collection_id: str, vector: Sequence[float], top_k: int) -> Dict[str, Any]:
        """
        Chroma query shape: {"ids": [[...]], "documents": [[...]],
        "distances": [[...]], "metadatas": [[...]]}, one inner list per query vector.
        """
        ...
