"""
The five command validation levels.

Each level takes the command and the result accumulated so far and mutates the
result. A level that records an error blocks the command; the orchestrator
stops at the first blocked level. Levels 4 and 5 never block.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from guardrails.execution_log import ExecutionLog
from guardrails.time_parser import extract_significant_words, parse_time_from_request
from schemas.command import (
    ACTION_TYPES,
    COMMAND_STATUSES,
    KNOWN_ACTORS,
    RELATION_TYPES,
    REQUIRED_FIELDS,
    RUNTIME_TYPES,
    SENSE_TYPES,
    Command,
)
from schemas.config import CommandConfig
from schemas.result import CommandValidationResult, ExecutionLogEntry

LOGGER = logging.getLogger(__name__)

SYNTAX, LOGIC, CONTEXT, APPROVAL, EXECUTION = 1, 2, 3, 4, 5

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
MIN_RELEVANCE = 0.1
MIN_WORDS_FOR_RELEVANCE = 3


def parse_scheduled_at(value: Union[datetime, str, None]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp; naive values are read as local time."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def scheduled_text(value: Union[datetime, str, None]) -> Optional[str]:
    return value.isoformat() if isinstance(value, datetime) else value


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


class LevelReporter:
    """Records issues on a result and mirrors them to the log."""

    def __init__(self, result: CommandValidationResult, level: int, verbose: bool = True) -> None:
        self.result = result
        self.level = level
        self.verbose = verbose

    def error(self, code: str, message: str, **details) -> None:
        self.result.add_error(self.level, code, message, details)
        if self.verbose:
            LOGGER.error("[L%s] %s: %s %s", self.level, code, message, details)

    def warning(self, code: str, message: str, **details) -> None:
        self.result.add_warning(self.level, code, message, details)
        if self.verbose:
            LOGGER.warning("[L%s] %s: %s %s", self.level, code, message, details)

    def check(self, name: str, **details) -> None:
        self.result.add_check(self.level, name, details)
        LOGGER.debug("[L%s] %s passed %s", self.level, name, details)

    @property
    def blocked(self) -> bool:
        return self.result.blocked


# -- Level 1: syntax ---------------------------------------------------------

def _check_required_fields(command: Command, report: LevelReporter) -> None:
    missing = [
        label for field, label in REQUIRED_FIELDS
        if getattr(command, field) in (None, "")
    ]
    if missing:
        report.error(
            "MISSING_REQUIRED_FIELDS",
            f"Отсутствуют обязательные поля: {', '.join(missing)}",
            missing_fields=missing,
        )
        return
    report.check("REQUIRED_FIELDS", checked=len(REQUIRED_FIELDS))


def _check_data_formats(command: Command, report: LevelReporter) -> None:
    if command.scheduled_at and parse_scheduled_at(command.scheduled_at) is None:
        report.error(
            "INVALID_DATE_FORMAT",
            "Некорректный формат времени",
            value=scheduled_text(command.scheduled_at),
            expected="ISO 8601",
        )
        return
    if command.user_id and not UUID_PATTERN.match(command.user_id):
        report.error(
            "INVALID_USER_ID_FORMAT",
            "Некорректный формат user_id",
            value=command.user_id,
            expected="UUID",
        )
        return
    report.check("DATA_FORMATS")


def _check_enum_values(command: Command, report: LevelReporter) -> None:
    strict_enums = (
        ("sense_type", SENSE_TYPES, "INVALID_SENSE_TYPE", "Недопустимый тип команды"),
        ("runtime_type", RUNTIME_TYPES, "INVALID_RUNTIME_TYPE", "Недопустимый тип выполнения"),
        ("relation_type", RELATION_TYPES, "INVALID_RELATION_TYPE", "Недопустимый тип связи"),
    )
    for field, allowed, code, label in strict_enums:
        value = getattr(command, field)
        if value and value not in allowed:
            report.error(code, f"{label}: {value}", value=value, allowed=list(allowed))
            return

    # New delivery channels appear over time, so an unknown one only warns
    if command.action_type and command.action_type not in ACTION_TYPES:
        report.warning(
            "UNKNOWN_ACTION_TYPE",
            f"Неизвестный тип действия: {command.action_type}",
            value=command.action_type,
            known=list(ACTION_TYPES),
        )

    if command.status and command.status not in COMMAND_STATUSES:
        report.error(
            "INVALID_STATUS",
            f"Недопустимый статус: {command.status}",
            value=command.status,
            allowed=list(COMMAND_STATUSES),
        )
        return
    report.check("ENUM_VALUES")


def _check_string_lengths(command: Command, report: LevelReporter, config: CommandConfig) -> None:
    if command.title and len(command.title) > config.max_title_length:
        report.error(
            "TITLE_TOO_LONG",
            f"Заголовок слишком длинный ({len(command.title)} символов)",
            length=len(command.title),
            max=config.max_title_length,
        )
        return
    if command.content and len(command.content) > config.max_content_length:
        report.error(
            "CONTENT_TOO_LONG",
            f"Содержимое слишком длинное ({len(command.content)} символов)",
            length=len(command.content),
            max=config.max_content_length,
        )
        return
    report.check("STRING_LENGTHS")


def check_syntax(command: Command, result: CommandValidationResult, config: CommandConfig) -> None:
    """Level 1: required fields, formats, enum values and string lengths."""
    LOGGER.debug("Level 1: SYNTAX")
    report = LevelReporter(result, SYNTAX, config.verbose_logging)
    _check_required_fields(command, report)
    if report.blocked:
        return
    _check_data_formats(command, report)
    if report.blocked:
        return
    _check_enum_values(command, report)
    if report.blocked:
        return
    _check_string_lengths(command, report, config)
    if report.blocked:
        return
    result.pass_level(SYNTAX)


# -- Level 2: logic ----------------------------------------------------------

def _check_time_in_future(
    command: Command, report: LevelReporter, config: CommandConfig, now: datetime
) -> None:
    if command.is_instant:
        report.check("TIME_IN_FUTURE", skipped=True, reason="instant command")
        return
    scheduled_at = parse_scheduled_at(command.scheduled_at)
    tolerance = timedelta(seconds=config.past_tolerance_seconds)
    if scheduled_at < now - tolerance:
        report.error(
            "TIME_IN_PAST",
            "Время выполнения в прошлом",
            scheduled_at=scheduled_text(command.scheduled_at),
            now=now.isoformat(),
            diff_seconds=round_half_up((now - scheduled_at).total_seconds()),
        )
        return
    report.check(
        "TIME_IN_FUTURE",
        scheduled_at=scheduled_text(command.scheduled_at),
        seconds_from_now=round_half_up((scheduled_at - now).total_seconds()),
    )


def _check_schedule_horizon(
    command: Command, report: LevelReporter, config: CommandConfig, now: datetime
) -> None:
    if command.is_instant:
        report.check("SCHEDULE_HORIZON", skipped=True)
        return
    scheduled_at = parse_scheduled_at(command.scheduled_at)
    days_ahead = (scheduled_at - now).total_seconds() / 86400
    if days_ahead > config.max_schedule_days_ahead:
        report.error(
            "SCHEDULE_TOO_FAR",
            f"Напоминание запланировано слишком далеко ({round_half_up(days_ahead)} дней)",
            days_ahead=round_half_up(days_ahead),
            max_days=config.max_schedule_days_ahead,
        )
        return
    if days_ahead > config.far_ahead_warning_days:
        report.warning(
            "SCHEDULE_FAR_AHEAD",
            f"Напоминание запланировано на {round_half_up(days_ahead)} дней вперёд",
            days_ahead=round_half_up(days_ahead),
        )
    report.check("SCHEDULE_HORIZON", days_ahead=round_half_up(days_ahead))


def _check_actor_consistency(command: Command, report: LevelReporter) -> None:
    for field, code, label in (
        ("creator", "UNKNOWN_CREATOR", "Неизвестный создатель"),
        ("acceptor", "UNKNOWN_ACCEPTOR", "Неизвестный получатель"),
    ):
        value = getattr(command, field)
        if value and value.lower() not in KNOWN_ACTORS:
            report.warning(code, f"{label}: {value}", value=value, known=list(KNOWN_ACTORS))
    report.check("ACTOR_CONSISTENCY")


def _check_type_consistency(command: Command, report: LevelReporter) -> None:
    if command.sense_type == "reminder" and command.runtime_type == "instant":
        report.warning(
            "UNUSUAL_TYPE_COMBINATION",
            "Напоминание с мгновенным выполнением: необычная комбинация",
            sense_type=command.sense_type,
            runtime_type=command.runtime_type,
        )
    if command.sense_type == "management" and command.runtime_type != "scripted":
        report.warning(
            "MANAGEMENT_NOT_SCRIPTED",
            "Управляющая команда без сценария",
            sense_type=command.sense_type,
            runtime_type=command.runtime_type,
        )
    report.check("TYPE_CONSISTENCY")


def check_logic(
    command: Command, result: CommandValidationResult, config: CommandConfig, now: datetime
) -> None:
    """Level 2: time window, actors and type combinations."""
    LOGGER.debug("Level 2: LOGIC")
    report = LevelReporter(result, LOGIC, config.verbose_logging)
    _check_time_in_future(command, report, config, now)
    if report.blocked:
        return
    _check_schedule_horizon(command, report, config, now)
    if report.blocked:
        return
    _check_actor_consistency(command, report)
    _check_type_consistency(command, report)
    result.pass_level(LOGIC)


# -- Level 3: context --------------------------------------------------------

def _check_time_deviation(
    command: Command,
    user_request: str,
    report: LevelReporter,
    threshold_minutes: float,
    now: datetime,
) -> None:
    requested = parse_time_from_request(user_request, now)
    if requested is None:
        report.check("TIME_DEVIATION", skipped=True, reason="cannot parse time from request")
        return

    scheduled_at = parse_scheduled_at(command.scheduled_at)
    deviation_minutes = abs((scheduled_at - requested).total_seconds()) / 60
    if deviation_minutes > threshold_minutes:
        report.error(
            "TIME_DEVIATION_EXCEEDED",
            f"Отклонение времени {round_half_up(deviation_minutes)} мин "
            f"превышает порог {threshold_minutes:g} мин",
            requested=requested.isoformat(),
            created=scheduled_text(command.scheduled_at),
            deviation_minutes=round_half_up(deviation_minutes),
            threshold_minutes=threshold_minutes,
        )
        return

    report.result.risk_score += round_half_up(deviation_minutes)
    report.check(
        "TIME_DEVIATION",
        deviation_minutes=round(deviation_minutes, 1),
        threshold_minutes=threshold_minutes,
    )


def _check_content_relevance(command: Command, user_request: str, report: LevelReporter) -> None:
    request_words = extract_significant_words(user_request)
    title_words = extract_significant_words(command.title)
    if not request_words or not title_words:
        report.check("CONTENT_RELEVANCE", skipped=True)
        return

    common_words = [word for word in request_words if word in title_words]
    relevance = len(common_words) / max(len(request_words), 1)
    score = f"{round_half_up(relevance * 100)}%"
    if relevance < MIN_RELEVANCE and len(request_words) > MIN_WORDS_FOR_RELEVANCE:
        report.warning(
            "LOW_CONTENT_RELEVANCE",
            "Заголовок команды мало соответствует запросу",
            request_words=request_words[:10],
            title_words=title_words[:10],
            common_words=common_words,
            relevance_score=score,
        )
    report.check("CONTENT_RELEVANCE", relevance_score=score)


def check_context(
    command: Command,
    user_request: Optional[str],
    result: CommandValidationResult,
    config: CommandConfig,
    now: datetime,
    threshold_minutes: Optional[float] = None,
) -> None:
    """Level 3: compare the command with the request that produced it."""
    LOGGER.debug("Level 3: CONTEXT")
    report = LevelReporter(result, CONTEXT, config.verbose_logging)
    if not user_request:
        report.check("CONTEXT_VALIDATION", skipped=True, reason="no user request")
        result.pass_level(CONTEXT)
        return

    if threshold_minutes is None:
        threshold_minutes = config.time_deviation_threshold_minutes
    _check_time_deviation(command, user_request, report, threshold_minutes, now)
    if report.blocked:
        return
    _check_content_relevance(command, user_request, report)
    result.pass_level(CONTEXT)


# -- Level 4: approval -------------------------------------------------------

def approval_requirement(command: Command) -> dict:
    """Decide whether a human must confirm the command before it runs."""
    if command.sense_type == "management":
        return {
            "required": True,
            "reason": "Management команды требуют подтверждения",
            "verifier": "user",
        }
    if command.sense_type == "assignment":
        return {
            "required": True,
            "reason": "Поручения требуют подтверждения",
            "verifier": command.acceptor or "user",
        }
    if command.sense_type == "action" and command.action_type == "webhook":
        return {
            "required": True,
            "reason": "Webhook-действия требуют подтверждения",
            "verifier": "user",
        }
    return {"required": False}


def check_approval(command: Command, result: CommandValidationResult) -> None:
    """Level 4: annotate approval; enforcement belongs to the executor."""
    LOGGER.debug("Level 4: APPROVAL")
    decision = approval_requirement(command)
    if decision["required"]:
        result.approval_required = True
        result.approval_reason = decision["reason"]
        result.approval_verifier = decision["verifier"]
    result.add_check(APPROVAL, "APPROVAL_CHECK", decision)
    result.pass_level(APPROVAL)


# -- Level 5: execution log --------------------------------------------------

def record_execution(
    command: Command, result: CommandValidationResult, log: ExecutionLog
) -> ExecutionLogEntry:
    """Level 5: append an audit entry for the validated command."""
    LOGGER.debug("Level 5: EXECUTION")
    entry = ExecutionLogEntry(
        command_id=command.id or "pending",
        command_title=command.title,
        command_type=command.command_type,
        validation_passed=result.valid,
        risk_score=result.risk_score,
        approval_required=result.approval_required,
        checked_at=datetime.now(timezone.utc).isoformat(),
        checks_count=len(result.checks),
        warnings_count=len(result.warnings),
    )
    log.append(entry)
    result.add_check(EXECUTION, "EXECUTION_LOGGED", {"log_id": entry.checked_at})
    result.pass_level(EXECUTION)
    result.metadata.execution_log = entry
    return entry
