"""
Bounded audit log of commands that cleared the pipeline.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from pydantic import ValidationError

from guardrails.storage import JsonStore
from schemas.result import ExecutionLogEntry

LOGGER = logging.getLogger(__name__)

DEFAULT_LOG_LIMIT = 100


class ExecutionLog:
    """Append-only log keeping the most recent entries; oldest dropped first."""

    def __init__(self, store: Optional[JsonStore] = None, limit: int = DEFAULT_LOG_LIMIT) -> None:
        self.store = store or JsonStore()
        self.limit = limit
        self._lock = threading.Lock()

    def _read(self) -> list[dict]:
        try:
            stored = self.store.load()
        except (OSError, ValueError):
            LOGGER.exception("Execution log unreadable; starting empty")
            return []
        return stored if isinstance(stored, list) else []

    def append(self, entry: ExecutionLogEntry) -> None:
        with self._lock:
            entries = self._read()
            entries.append(entry.model_dump(mode="json"))
            if len(entries) > self.limit:
                del entries[: len(entries) - self.limit]
            if not self.store.save(entries):
                LOGGER.warning("Could not save execution log entry for %s", entry.command_id)

    def entries(self) -> list[ExecutionLogEntry]:
        with self._lock:
            raw = self._read()
        parsed: list[ExecutionLogEntry] = []
        for record in raw:
            try:
                parsed.append(ExecutionLogEntry.model_validate(record))
            except ValidationError:
                LOGGER.warning("Skipping malformed execution log record: %s", record)
        return parsed

    def clear(self) -> None:
        with self._lock:
            self.store.clear()
