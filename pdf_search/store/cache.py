from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Dict, Optional

from ..index.schema import CollectionMapping

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_name(name: str) -> str:
    safe = _UNSAFE.sub("_", name.strip())
    return safe.lstrip(".") or "_"


class MemoryCache:
    """Process-lifetime name -> CollectionMapping map, safe to share across threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Dict[str, CollectionMapping] = {}

    def get(self, name: str) -> Optional[CollectionMapping]:
        with self._lock:
            return self._items.get(name)

    def put(self, mapping: CollectionMapping) -> None:
        with self._lock:
            self._items[mapping.name] = mapping

    def pop(self, name: str) -> None:
        with self._lock:
            self._items.pop(name, None)


class DurableCache:
    """
    One small file per collection holding its external id, so ids survive
    restarts. Reads and writes are best-effort: a broken cache directory only
    costs a lookup round trip, never the operation.
    """

    suffix = ".id"

    def __init__(self, cache_dir: str | Path):
        self.cache_dir = Path(cache_dir).expanduser()

    def _path(self, name: str) -> Path:
        return self.cache_dir / (sanitize_name(name) + self.suffix)

    def read(self, name: str) -> Optional[str]:
        path = self._path(name)
        try:
            value = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("could not read collection cache %s: %s", path, e)
            return None
        return value or None

    def write(self, mapping: CollectionMapping) -> None:
        path = self._path(mapping.name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".tmp")
            tmp.write_text(mapping.external_id, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            logger.warning("could not persist collection id for %r to %s: %s", mapping.name, path, e)

    def delete(self, name: str) -> None:
        path = self._path(name)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("could not remove collection cache %s: %s", path, e)
