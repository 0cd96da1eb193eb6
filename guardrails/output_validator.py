"""
Fast output gate for assistant replies.

Checks run in a fixed order and the first match wins: length, whitelists,
then blacklists by category. Blocked text is always replaced by a canned,
reason-specific fallback.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Optional, Union

from guardrails import patterns as p
from guardrails.rule_database import RuleDatabase
from guardrails.storage import JsonStore
from schemas.config import OutputConfig, ValidatorConfig
from schemas.output import BlockLogEntry, ValidationContext, ValidationResult

LOGGER = logging.getLogger(__name__)

ContextLike = Union[ValidationContext, Mapping, None]

LONG_RESPONSE_CONFIDENCE = 0.7
MANY_ASSERTIONS_CONFIDENCE = 0.6
LEARNED_GOOD_CONFIDENCE = 0.9
CLAIM_KEYWORD_LIMIT = 3


def coerce_context(context: ContextLike) -> ValidationContext:
    if context is None:
        return ValidationContext()
    if isinstance(context, ValidationContext):
        return context
    return ValidationContext.model_validate(dict(context))


def verify_claim_in_context(text: str, pattern: str, context: ContextLike) -> bool:
    """
    Weak check that a claim about the past is backed by conversation history.

    Takes up to three words longer than three characters following the marker
    and looks for any of them in the history text. No context means the claim
    cannot be verified.
    """
    ctx = coerce_context(context)
    if not ctx.history and not ctx.feed:
        return False

    history_text = ctx.history_text()
    segments = text.lower().split(pattern.lower())
    if len(segments) < 2 or not segments[1]:
        return False

    words = [w for w in p.CLAIM_WORD_SPLIT.split(segments[1]) if len(w) > 3]
    return any(keyword in history_text for keyword in words[:CLAIM_KEYWORD_LIMIT])


class OutputValidator:
    """Validates assistant output against the rule database."""

    def __init__(
        self,
        database: Optional[RuleDatabase] = None,
        config: Optional[OutputConfig] = None,
    ) -> None:
        self.config = config or (database.config if database else OutputConfig())
        self.database = database or RuleDatabase(config=self.config)

    @classmethod
    def from_config(cls, config: ValidatorConfig) -> "OutputValidator":
        store = JsonStore(config.storage.rule_db_path)
        return cls(RuleDatabase(store, config.output), config.output)

    def _blocked(
        self,
        result: ValidationResult,
        reason: str,
        matched: Optional[str],
        started: float,
    ) -> ValidationResult:
        result.valid = False
        result.blocked = True
        result.reason = reason
        result.sanitized = p.fallback_for(reason)
        self.database.log_block(result.original, reason, matched)
        self.database.record_check(reason, passed=False)
        result.processing_time_ms = (time.perf_counter() - started) * 1000
        return result

    def _passed(self, result: ValidationResult, started: float) -> ValidationResult:
        self.database.record_check(None, passed=True)
        result.processing_time_ms = (time.perf_counter() - started) * 1000
        return result

    def validate_output(self, text: Optional[str], context: ContextLike = None) -> ValidationResult:
        """Check an assistant reply before it is shown to the user."""
        started = time.perf_counter()
        text = text or ""
        result = ValidationResult(original=text, sanitized=text)
        if not text:
            return result

        if len(text) > self.config.max_output_length:
            return self._blocked(result, p.REASON_TOO_LONG, None, started)

        state = self.database.state
        text_lower = text.lower()

        if p.find_substring(text_lower, state.safe_patterns) is not None:
            result.confidence = 1.0
            return self._passed(result, started)
        if p.find_substring(text_lower, state.learned_good_patterns) is not None:
            result.confidence = LEARNED_GOOD_CONFIDENCE
            return self._passed(result, started)

        blacklists = (
            (p.REASON_FAKE_CAPABILITY, state.fake_capabilities),
            (p.REASON_FALSE_PROMISE, state.false_promises),
            (p.REASON_ARCHITECTURE_LEAK, state.architecture_leak),
        )
        for reason, table in blacklists:
            matched = p.find_substring(text_lower, table)
            if matched is not None:
                return self._blocked(result, reason, matched, started)

        for marker in state.hallucination_markers:
            if marker.lower() not in text_lower:
                continue
            if not verify_claim_in_context(text, marker, context):
                return self._blocked(result, p.REASON_HALLUCINATION, marker, started)

        for reason, table in (
            (p.REASON_MANIPULATION, state.manipulation),
            (p.REASON_LEARNED_BAD, state.learned_bad_patterns),
        ):
            matched = p.find_substring(text_lower, table)
            if matched is not None:
                return self._blocked(result, reason, matched, started)

        if len(text) > self.config.long_response_length:
            result.confidence = LONG_RESPONSE_CONFIDENCE
            result.warnings.append("long_response_no_safe_pattern")

        if p.count_assertions(text_lower) > self.config.max_assertions:
            result.confidence = min(result.confidence, MANY_ASSERTIONS_CONFIDENCE)
            result.warnings.append("many_assertions")

        return self._passed(result, started)

    def validate_input(self, text: Optional[str]) -> ValidationResult:
        """Length gate for user messages; stats are not touched."""
        started = time.perf_counter()
        text = text or ""
        result = ValidationResult(original=text, sanitized=text)
        if len(text) > self.config.max_input_length:
            result.valid = False
            result.blocked = True
            result.reason = p.REASON_INPUT_TOO_LONG
            result.sanitized = p.fallback_for(p.REASON_INPUT_TOO_LONG)
            self.database.log_block(text, p.REASON_INPUT_TOO_LONG)
        result.processing_time_ms = (time.perf_counter() - started) * 1000
        return result

    # Learning API, for slower reviewers feeding corrections back

    def add_bad_pattern(self, pattern: str, source: str = "cascade2") -> bool:
        return self.database.add_bad_pattern(pattern, source)

    def add_good_pattern(self, pattern: str, source: str = "cascade2") -> bool:
        return self.database.add_good_pattern(pattern, source)

    def remove_bad_pattern(self, pattern: str) -> bool:
        return self.database.remove_bad_pattern(pattern)

    # User feedback

    def report_bad_response(self, text: str, feedback: str = "bad") -> None:
        """Record a bad reply the gate let through."""
        LOGGER.info("User reported bad response (%s): %s", feedback, text[:50])
        self.database.log_block(text, f"user_report_{feedback}")

    def report_false_positive(self, text: str, reason: str) -> None:
        LOGGER.info("User reported false positive (%s): %s", reason, text[:50])

    def get_stats(self) -> dict:
        return self.database.get_stats()

    def get_config(self) -> dict:
        return self.config.model_dump()

    def get_block_log(self) -> list[BlockLogEntry]:
        return self.database.get_block_log()

    # Admin

    def export_db(self) -> str:
        return self.database.export_json()

    def import_db(self, payload: str) -> None:
        self.database.import_json(payload)

    def reset_db(self) -> None:
        self.database.reset()
