"""
Pydantic schemas for type-safe data structures.
"""
from .command import Command
from .config import CommandConfig, OutputConfig, StorageConfig, ValidatorConfig
from .output import (
    BlockLogEntry,
    RuleDatabaseState,
    RuleStats,
    ValidationContext,
    ValidationResult,
)
from .result import (
    CommandValidationResult,
    ExecutionLogEntry,
    ValidationCheck,
    ValidationIssue,
)

__all__ = [
    "Command",
    "CommandConfig",
    "OutputConfig",
    "StorageConfig",
    "ValidatorConfig",
    "BlockLogEntry",
    "RuleDatabaseState",
    "RuleStats",
    "ValidationContext",
    "ValidationResult",
    "CommandValidationResult",
    "ExecutionLogEntry",
    "ValidationCheck",
    "ValidationIssue",
]
