"""Process-wide logging setup shared by the CLI and the HTTP server."""
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict, Optional, TextIO

NOISY_LOGGERS = ("urllib3", "httpx", "chromadb", "pypdf", "fastembed")

PLAIN_FORMAT = "%(levelname)s %(name)s - %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# attributes every LogRecord has; anything else came in through `extra=`
_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonLinesFormatter(logging.Formatter):
    """One JSON object per record, including any `extra=` fields."""

    def format(self, record: logging.LogRecord) -> str:
        doc: Dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "at": f"{record.filename}:{record.lineno}",
        }
        for key, value in vars(record).items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                doc[key] = value
        if record.exc_info:
            doc["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(doc, ensure_ascii=False, default=str)


def coerce_level(level: str | int | None) -> int:
    """'debug', 'WARNING', '10' or 10 -> logging level; anything unknown -> INFO."""
    if isinstance(level, int):
        return level
    name = str(level or "").strip().upper()
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    level: str | int | None = None,
    json_logs: bool = False,
    stream: Optional[TextIO] = None,
) -> int:
    """
    Replace the root handlers with a single stream handler (stderr by default).

    `level` falls back to $LOG_LEVEL, then INFO. Third-party HTTP and storage
    loggers are held at WARNING unless a stricter level was asked for.
    Returns the level that was applied.
    """
    resolved = coerce_level(level or os.getenv("LOG_LEVEL"))

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_logs:
        handler.setFormatter(JsonLinesFormatter())
    else:
        fmt = DEBUG_FORMAT if resolved <= logging.DEBUG else PLAIN_FORMAT
        handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(resolved)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
    return resolved
