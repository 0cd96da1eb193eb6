"""
Command validation result schemas.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

RiskLevel = Literal["low", "medium", "high"]

VALIDATOR_VERSION = "1.0.0"
WARNING_RISK_POINTS = 5


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def classify_risk(score: int) -> RiskLevel:
    """Map a risk score to its level: low < 10 <= medium < 30 <= high."""
    if score < 10:
        return "low"
    if score < 30:
        return "medium"
    return "high"


class ValidationIssue(BaseModel):
    """Error or warning raised by a level."""
    level: int
    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[str] = None


class ValidationCheck(BaseModel):
    level: int
    name: str
    status: Literal["PASS"] = "PASS"
    details: dict[str, Any] = Field(default_factory=dict)


class ExecutionLogEntry(BaseModel):
    """Audit snapshot written once a command clears every level."""
    command_id: str
    command_title: Optional[str]
    command_type: str
    validation_passed: bool
    risk_score: int
    approval_required: bool
    checked_at: str
    checks_count: int
    warnings_count: int


class ResultMetadata(BaseModel):
    validator_version: str = VALIDATOR_VERSION
    validated_at: str = Field(default_factory=utc_now_iso)
    completed_at: Optional[str] = None
    command_title: Optional[str] = None
    user_request: Optional[str] = None
    levels_passed: list[int] = Field(default_factory=list)
    total_checks: int = 0
    total_errors: int = 0
    total_warnings: int = 0
    execution_log: Optional[ExecutionLogEntry] = None


class CommandValidationResult(BaseModel):
    """Accumulated outcome of the command pipeline."""
    valid: bool = True
    blocked: bool = False
    blocked_at_level: Optional[int] = None
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    checks: list[ValidationCheck] = Field(default_factory=list)
    approval_required: bool = False
    approval_reason: Optional[str] = None
    approval_verifier: Optional[str] = None
    risk_score: int = Field(default=0, ge=0)
    risk_level: RiskLevel = "low"
    metadata: ResultMetadata = Field(default_factory=ResultMetadata)

    def add_error(
        self, level: int, code: str, message: str, details: Optional[dict] = None
    ) -> ValidationIssue:
        issue = ValidationIssue(
            level=level,
            code=code,
            message=message,
            details=details or {},
            timestamp=utc_now_iso(),
        )
        self.errors.append(issue)
        self.valid = False
        self.blocked = True
        self.blocked_at_level = level
        return issue

    def add_warning(
        self, level: int, code: str, message: str, details: Optional[dict] = None
    ) -> ValidationIssue:
        issue = ValidationIssue(level=level, code=code, message=message, details=details or {})
        self.warnings.append(issue)
        self.risk_score += WARNING_RISK_POINTS
        return issue

    def add_check(self, level: int, name: str, details: Optional[dict] = None) -> ValidationCheck:
        check = ValidationCheck(level=level, name=name, details=details or {})
        self.checks.append(check)
        return check

    def pass_level(self, level: int) -> None:
        self.metadata.levels_passed.append(level)

    @property
    def first_error(self) -> Optional[ValidationIssue]:
        return self.errors[0] if self.errors else None
