"""In-memory debug log feed for the diagnostics overlay.

A :class:`logging.Handler` that keeps the newest records in a bounded
buffer so the UI can show recent diagnostics activity without tailing
server logs.
"""

from __future__ import annotations

import logging
from collections import deque
from threading import Lock
from typing import Any

DEFAULT_DEBUG_LOG_SIZE = 100


def _level_name(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    return "info"


class DebugLogBuffer(logging.Handler):
    def __init__(self, max_entries: int = DEFAULT_DEBUG_LOG_SIZE, level: int = logging.INFO):
        super().__init__(level=level)
        self._entries: deque[dict[str, Any]] = deque(maxlen=max(1, int(max_entries)))
        self._entries_lock = Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            self.handleError(record)
            return
        entry = {
            "timestamp_ms": int(record.created * 1000.0),
            "level": _level_name(record.levelno),
            "message": message,
        }
        with self._entries_lock:
            self._entries.appendleft(entry)

    def entries(self) -> list[dict[str, Any]]:
        """Newest-first copy of the buffered entries."""
        with self._entries_lock:
            return [dict(entry) for entry in self._entries]

    def clear(self) -> None:
        with self._entries_lock:
            self._entries.clear()

    def attach(self, logger_name: str = "ridediag") -> None:
        logger = logging.getLogger(logger_name)
        if self not in logger.handlers:
            logger.addHandler(self)

    def detach(self, logger_name: str = "ridediag") -> None:
        logging.getLogger(logger_name).removeHandler(self)
