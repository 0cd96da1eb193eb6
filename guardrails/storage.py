"""
Best-effort JSON persistence for validator state.
"""
from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Optional

LOGGER = logging.getLogger(__name__)


class JsonStore:
    """
    A single JSON document on disk, or in memory when no path is given.

    Reads raise on a corrupt document so callers can choose a fallback.
    Writes never raise: a failed write is logged and reported as False,
    so a validation decision never depends on storage availability.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self._memory: Any = None

    def load(self) -> Any:
        """Return the stored payload, or None when nothing was saved yet."""
        if self.path is None:
            return copy.deepcopy(self._memory)
        if not self.path.exists():
            return None
        with self.path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def save(self, payload: Any) -> bool:
        if self.path is None:
            self._memory = copy.deepcopy(payload)
            return True
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=True)
        except (OSError, TypeError, ValueError):
            LOGGER.exception("Failed to persist %s", self.path)
            return False
        return True

    def clear(self) -> None:
        self._memory = None
        if self.path is None:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            LOGGER.exception("Failed to remove %s", self.path)
