"""
Cascading validator for assistant-generated commands.

Levels: SYNTAX -> LOGIC -> CONTEXT -> APPROVAL -> EXECUTION. The first level
that records an error stops the cascade. Any unexpected exception inside a
level blocks the command with VALIDATOR_ERROR; the pipeline never fails open.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Callable, Optional, Union

from pydantic import ValidationError

from guardrails.command_levels import (
    check_approval,
    check_context,
    check_logic,
    check_syntax,
    record_execution,
)
from guardrails.errors import MalformedCommandError
from guardrails.execution_log import ExecutionLog
from guardrails.storage import JsonStore
from schemas.command import Command, ValidateOptions
from schemas.config import CommandConfig, ValidatorConfig
from schemas.result import (
    CommandValidationResult,
    ExecutionLogEntry,
    classify_risk,
    utc_now_iso,
)

LOGGER = logging.getLogger(__name__)

CommandLike = Union[Command, Mapping]
OptionsLike = Union[ValidateOptions, Mapping, None]


def local_now() -> datetime:
    return datetime.now().astimezone()


def coerce_command(command: CommandLike) -> Command:
    """Build a Command from a mapping; raise when the input is not command-shaped."""
    if isinstance(command, Command):
        return command
    if not isinstance(command, Mapping):
        raise MalformedCommandError(
            f"Command must be a mapping, got {type(command).__name__}."
        )
    try:
        return Command.model_validate(dict(command))
    except ValidationError as exc:
        raise MalformedCommandError(f"Malformed command: {exc}") from exc


def coerce_options(options: OptionsLike) -> ValidateOptions:
    if options is None:
        return ValidateOptions()
    if isinstance(options, ValidateOptions):
        return options
    return ValidateOptions.model_validate(dict(options))


class CommandValidator:
    """Runs commands through the five validation levels."""

    def __init__(
        self,
        config: Optional[CommandConfig] = None,
        execution_log: Optional[ExecutionLog] = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.config = config or CommandConfig()
        self.execution_log = execution_log or ExecutionLog(limit=self.config.execution_log_limit)
        self.clock = clock

    @classmethod
    def from_config(cls, config: ValidatorConfig) -> "CommandValidator":
        log = ExecutionLog(
            JsonStore(config.storage.execution_log_path),
            limit=config.command.execution_log_limit,
        )
        return cls(config.command, log)

    def _now(self, options: ValidateOptions) -> datetime:
        now = options.now or self.clock()
        return now if now.tzinfo is not None else now.astimezone()

    def validate(
        self,
        command: CommandLike,
        user_request: Optional[str] = None,
        options: OptionsLike = None,
    ) -> CommandValidationResult:
        """Full validation through all five levels."""
        cmd = coerce_command(command)
        opts = coerce_options(options)
        now = self._now(opts)

        result = CommandValidationResult()
        result.metadata.command_title = cmd.title
        result.metadata.user_request = user_request
        LOGGER.info("Validating command: %s", cmd.title or "untitled")

        stages = (
            lambda: check_syntax(cmd, result, self.config),
            lambda: check_logic(cmd, result, self.config, now),
            lambda: check_context(
                cmd, user_request, result, self.config, now,
                opts.time_deviation_threshold_minutes,
            ),
            lambda: check_approval(cmd, result),
            lambda: record_execution(cmd, result, self.execution_log),
        )
        self._run(stages, result)
        return self.finalize(result)

    def quick_validate(self, command: CommandLike, options: OptionsLike = None) -> CommandValidationResult:
        """Syntax and logic only, for pre-flight checks without a user request."""
        cmd = coerce_command(command)
        now = self._now(coerce_options(options))
        result = CommandValidationResult()
        result.metadata.command_title = cmd.title
        stages = (
            lambda: check_syntax(cmd, result, self.config),
            lambda: check_logic(cmd, result, self.config, now),
        )
        self._run(stages, result)
        return self.finalize(result)

    @staticmethod
    def _run(stages, result: CommandValidationResult) -> None:
        try:
            for stage in stages:
                stage()
                if result.blocked:
                    return
        except Exception as exc:
            LOGGER.exception("Command validator failed internally")
            result.add_error(0, "VALIDATOR_ERROR", "Внутренняя ошибка валидатора", {"error": str(exc)})

    def finalize(self, result: CommandValidationResult) -> CommandValidationResult:
        """Stamp completion, aggregate counts and classify risk."""
        meta = result.metadata
        meta.completed_at = utc_now_iso()
        meta.total_checks = len(result.checks)
        meta.total_errors = len(result.errors)
        meta.total_warnings = len(result.warnings)
        result.risk_level = classify_risk(result.risk_score)

        if result.valid:
            LOGGER.info(
                "PASSED (%s checks, risk: %s)", len(result.checks), result.risk_level
            )
        else:
            first = result.first_error
            LOGGER.info(
                "BLOCKED at level %s: %s",
                result.blocked_at_level,
                first.code if first else "unknown",
            )
        return result

    @staticmethod
    def format_for_user(result: CommandValidationResult) -> str:
        if result.valid and not result.approval_required:
            return f"✅ Проверено: {len(result.checks)} проверок пройдено"
        if result.valid:
            return f"⏳ Требуется подтверждение: {result.approval_reason}"
        lines = "\n".join(f"• {error.message}" for error in result.errors)
        return f"❌ Отказано:\n{lines}"

    @staticmethod
    def format_brief_report(result: CommandValidationResult) -> str:
        status = "PASS" if result.valid else "BLOCK"
        levels = "→".join(str(level) for level in result.metadata.levels_passed) or "none"
        return f"[Validator] {status} | Levels: {levels} | risk:{result.risk_score}"

    def get_logs(self) -> list[ExecutionLogEntry]:
        return self.execution_log.entries()

    def clear_logs(self) -> None:
        self.execution_log.clear()
