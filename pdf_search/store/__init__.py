from .base import VectorStore
from .cache import DurableCache, MemoryCache
from .resolver import CollectionResolver

__all__ = ["VectorStore", "DurableCache", "MemoryCache", "CollectionResolver"]
