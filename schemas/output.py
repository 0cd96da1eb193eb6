"""
Schemas for free-text output validation and the rule database.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class ValidationContext(BaseModel):
    """Conversation context used to verify claims about the past."""
    history: list[dict[str, Any]] = Field(default_factory=list)
    feed: list[Any] = Field(default_factory=list)

    def history_text(self) -> str:
        return " ".join(str(turn.get("text") or "").lower() for turn in self.history)


class ValidationResult(BaseModel):
    """Outcome of a single output (or input) check."""
    valid: bool = True
    blocked: bool = False
    reason: Optional[str] = None
    original: str
    sanitized: str
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    warnings: list[str] = Field(default_factory=list)
    processing_time_ms: float = 0.0


class BlockLogEntry(BaseModel):
    text: str
    reason: str
    matched_pattern: Optional[str] = None
    timestamp: str


class RuleStats(BaseModel):
    total_checked: int = 0
    blocked: int = 0
    passed: int = 0
    by_reason: dict[str, int] = Field(default_factory=dict)


class RuleDatabaseState(BaseModel):
    """Persisted shape of the rule database."""
    version: str
    capabilities: list[str]
    safe_patterns: list[str]
    fake_capabilities: list[str]
    false_promises: list[str]
    architecture_leak: list[str]
    hallucination_markers: list[str]
    manipulation: list[str]
    learned_bad_patterns: list[str] = Field(default_factory=list)
    learned_good_patterns: list[str] = Field(default_factory=list)
    stats: RuleStats = Field(default_factory=RuleStats)
    block_log: list[BlockLogEntry] = Field(default_factory=list)
