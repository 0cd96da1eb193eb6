"""
Persisted rule database for the output gate.

Holds the shipped pattern tables, patterns learned at runtime from slower
reviewers, check statistics and a bounded block log. One instance is owned by
whoever builds the OutputValidator and injected into it.
"""
from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from guardrails.errors import RuleDatabaseError
from guardrails.patterns import default_rule_tables
from guardrails.storage import JsonStore
from schemas.config import OutputConfig
from schemas.output import BlockLogEntry, RuleDatabaseState

LOGGER = logging.getLogger(__name__)

BLOCK_LOG_TEXT_LIMIT = 200


def merge_deep(target: dict, source: Mapping) -> dict:
    """Merge source into target: nested mappings key by key, everything else replaced."""
    for key, value in source.items():
        if isinstance(value, Mapping):
            if not isinstance(target.get(key), dict):
                target[key] = {}
            merge_deep(target[key], value)
        else:
            target[key] = value
    return target


class RuleDatabase:
    """Rule tables, learned patterns, stats and block log behind one lock."""

    def __init__(
        self,
        store: Optional[JsonStore] = None,
        config: Optional[OutputConfig] = None,
    ) -> None:
        self.store = store or JsonStore()
        self.config = config or OutputConfig()
        self._lock = threading.RLock()
        self.state = self._load()

    # -- persistence ---------------------------------------------------------

    def _load(self) -> RuleDatabaseState:
        try:
            stored = self.store.load()
            return self._merged_state(stored or {})
        except (OSError, ValueError, RuleDatabaseError):
            LOGGER.exception("Failed to load rule database; using defaults")
            return RuleDatabaseState.model_validate(default_rule_tables())

    @staticmethod
    def _merged_state(payload: Any) -> RuleDatabaseState:
        if not isinstance(payload, Mapping):
            raise RuleDatabaseError("Rule database payload must be a JSON object.")
        merged = merge_deep(default_rule_tables(), payload)
        try:
            return RuleDatabaseState.model_validate(merged)
        except ValidationError as exc:
            raise RuleDatabaseError(f"Invalid rule database payload: {exc}") from exc

    def save(self) -> bool:
        with self._lock:
            return self.store.save(self.state.model_dump(mode="json"))

    # -- statistics and block log -------------------------------------------

    def record_check(self, reason: Optional[str], passed: bool) -> None:
        """Count one output check; stats are flushed every N checks."""
        with self._lock:
            stats = self.state.stats
            stats.total_checked += 1
            if passed:
                stats.passed += 1
            else:
                stats.blocked += 1
                if reason:
                    stats.by_reason[reason] = stats.by_reason.get(reason, 0) + 1
            if stats.total_checked % self.config.stats_flush_interval == 0:
                self.save()

    def log_block(self, text: str, reason: str, matched_pattern: Optional[str] = None) -> None:
        with self._lock:
            self.state.block_log.append(
                BlockLogEntry(
                    text=text[:BLOCK_LOG_TEXT_LIMIT],
                    reason=reason,
                    matched_pattern=matched_pattern,
                    timestamp=datetime.now(timezone.utc).isoformat(),
                )
            )
            overflow = len(self.state.block_log) - self.config.block_log_limit
            if overflow > 0:
                del self.state.block_log[:overflow]
            self.save()
        LOGGER.warning(
            "BLOCKED (%s): %s%s",
            reason,
            text[:100],
            f" [matched: {matched_pattern}]" if matched_pattern else "",
        )

    def get_stats(self) -> dict:
        with self._lock:
            stats = self.state.stats
            if stats.total_checked > 0:
                block_rate = f"{stats.blocked / stats.total_checked * 100:.1f}%"
            else:
                block_rate = "0%"
            return {
                **stats.model_dump(),
                "block_rate": block_rate,
                "learned_bad_count": len(self.state.learned_bad_patterns),
                "learned_good_count": len(self.state.learned_good_patterns),
                "recent_blocks": [entry.model_dump() for entry in self.state.block_log[-10:]],
            }

    def get_block_log(self) -> list[BlockLogEntry]:
        with self._lock:
            return list(self.state.block_log)

    # -- learning API --------------------------------------------------------

    def _normalize(self, pattern: str) -> Optional[str]:
        normalized = pattern.lower().strip()
        if len(normalized) < self.config.min_pattern_length:
            return None
        return normalized

    def _add_learned(self, field: str, pattern: str, source: str, kind: str) -> bool:
        normalized = self._normalize(pattern)
        if normalized is None:
            return False
        with self._lock:
            patterns = getattr(self.state, field)
            if normalized in patterns:
                return False
            patterns.append(normalized)
            overflow = len(patterns) - self.config.learned_pattern_limit
            if overflow > 0:
                del patterns[:overflow]
            self.save()
        LOGGER.info("Learned %s pattern from %s: %s", kind, source, normalized)
        return True

    def add_bad_pattern(self, pattern: str, source: str = "cascade2") -> bool:
        return self._add_learned("learned_bad_patterns", pattern, source, "bad")

    def add_good_pattern(self, pattern: str, source: str = "cascade2") -> bool:
        return self._add_learned("learned_good_patterns", pattern, source, "good")

    def remove_bad_pattern(self, pattern: str) -> bool:
        normalized = pattern.lower().strip()
        with self._lock:
            if normalized not in self.state.learned_bad_patterns:
                return False
            self.state.learned_bad_patterns.remove(normalized)
            self.save()
        LOGGER.info("Removed learned bad pattern: %s", normalized)
        return True

    # -- admin ---------------------------------------------------------------

    def export_json(self) -> str:
        with self._lock:
            return json.dumps(self.state.model_dump(mode="json"), indent=2, ensure_ascii=False)

    def import_json(self, payload: str) -> None:
        """Replace state with an exported document merged over the defaults."""
        try:
            parsed = json.loads(payload)
        except ValueError as exc:
            raise RuleDatabaseError(f"Rule database import is not valid JSON: {exc}") from exc
        state = self._merged_state(parsed)
        with self._lock:
            self.state = state
            self.save()
        LOGGER.info("Rule database imported")

    def reset(self) -> None:
        with self._lock:
            self.state = RuleDatabaseState.model_validate(default_rule_tables())
            self.save()
        LOGGER.info("Rule database reset to defaults")
