"""
Validation gates for assistant output and assistant-generated commands.
"""
from .command_validator import CommandValidator
from .errors import MalformedCommandError, RuleDatabaseError
from .execution_log import ExecutionLog
from .output_validator import OutputValidator
from .rule_database import RuleDatabase
from .storage import JsonStore

__all__ = [
    "CommandValidator",
    "ExecutionLog",
    "JsonStore",
    "MalformedCommandError",
    "OutputValidator",
    "RuleDatabase",
    "RuleDatabaseError",
]
