import pytest

from guardrails import command_validator as command_validator_module
from guardrails.command_validator import CommandValidator
from guardrails.errors import MalformedCommandError
from guardrails.execution_log import ExecutionLog
from schemas.result import ExecutionLogEntry, classify_risk
from tests.factories import at, make_command


def test_valid_reminder_passes_every_level(command_validator: CommandValidator) -> None:
    result = command_validator.validate(make_command(), None)
    assert result.valid
    assert not result.blocked
    assert not result.approval_required
    assert result.metadata.levels_passed == [1, 2, 3, 4, 5]
    assert result.risk_level == "low"
    assert result.metadata.total_errors == 0
    assert result.metadata.total_checks == len(result.checks)
    assert result.metadata.completed_at is not None


def test_day_old_command_blocked_at_logic(command_validator: CommandValidator) -> None:
    result = command_validator.validate(make_command(scheduled_at=at(days=-1)), None)
    assert result.blocked
    assert result.blocked_at_level == 2
    assert result.errors[0].code == "TIME_IN_PAST"
    assert command_validator.get_logs() == []


def test_approval_decision_table(command_validator: CommandValidator) -> None:
    management = command_validator.validate(
        make_command(sense_type="management", runtime_type="scripted", action_type="webhook")
    )
    assert management.approval_required
    assert management.approval_verifier == "user"

    assignment = command_validator.validate(
        make_command(sense_type="assignment", acceptor="cortex")
    )
    assert assignment.approval_required
    assert assignment.approval_verifier == "cortex"

    webhook = command_validator.validate(make_command(sense_type="action", action_type="webhook"))
    assert webhook.approval_required
    assert webhook.approval_reason == "Webhook-действия требуют подтверждения"

    push_action = command_validator.validate(make_command(sense_type="action"))
    assert not push_action.approval_required

    reminder = command_validator.validate(make_command(sense_type="reminder", action_type="push"))
    assert not reminder.approval_required
    assert reminder.approval_reason is None


def test_execution_log_written_for_passing_commands(command_validator: CommandValidator) -> None:
    result = command_validator.validate(make_command(id="cmd-1"), None)
    logs = command_validator.get_logs()
    assert len(logs) == 1
    entry = logs[0]
    assert entry.command_id == "cmd-1"
    assert entry.command_type == "reminder/scheduled"
    assert entry.validation_passed
    assert result.metadata.execution_log == entry

    command_validator.validate(make_command(), None)
    assert command_validator.get_logs()[-1].command_id == "pending"

    command_validator.clear_logs()
    assert command_validator.get_logs() == []


def test_execution_log_keeps_most_recent_entries() -> None:
    log = ExecutionLog(limit=3)
    for index in range(5):
        log.append(
            ExecutionLogEntry(
                command_id=f"cmd-{index}",
                command_title=None,
                command_type="reminder/scheduled",
                validation_passed=True,
                risk_score=0,
                approval_required=False,
                checked_at=at(minutes=index),
                checks_count=10,
                warnings_count=0,
            )
        )
    assert [entry.command_id for entry in log.entries()] == ["cmd-2", "cmd-3", "cmd-4"]


def test_internal_failure_blocks(monkeypatch, command_validator: CommandValidator) -> None:
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(command_validator_module, "check_logic", explode)
    result = command_validator.validate(make_command(), None)
    assert result.blocked
    assert result.blocked_at_level == 0
    assert result.errors[0].code == "VALIDATOR_ERROR"
    assert result.errors[0].details == {"error": "boom"}
    assert result.metadata.levels_passed == [1]


def test_malformed_input_raises(command_validator: CommandValidator) -> None:
    with pytest.raises(MalformedCommandError):
        command_validator.validate("remind me")
    with pytest.raises(MalformedCommandError):
        command_validator.validate({"title": ["not", "a", "string"]})


def test_quick_validate_runs_two_levels(command_validator: CommandValidator) -> None:
    result = command_validator.quick_validate(make_command())
    assert result.metadata.levels_passed == [1, 2]
    assert command_validator.get_logs() == []

    blocked = command_validator.quick_validate(make_command(sense_type="unknown"))
    assert blocked.blocked_at_level == 1
    assert blocked.metadata.levels_passed == []


def test_risk_classification() -> None:
    assert classify_risk(0) == "low"
    assert classify_risk(9) == "low"
    assert classify_risk(10) == "medium"
    assert classify_risk(29) == "medium"
    assert classify_risk(30) == "high"


def test_formatters(command_validator: CommandValidator) -> None:
    passed = command_validator.validate(make_command(), None)
    assert CommandValidator.format_for_user(passed).startswith("✅")
    assert CommandValidator.format_brief_report(passed) == (
        "[Validator] PASS | Levels: 1→2→3→4→5 | risk:0"
    )

    pending = command_validator.validate(make_command(sense_type="assignment"))
    assert CommandValidator.format_for_user(pending) == (
        "⏳ Требуется подтверждение: Поручения требуют подтверждения"
    )

    blocked = command_validator.validate(make_command(scheduled_at=at(days=-1)))
    assert "Время выполнения в прошлом" in CommandValidator.format_for_user(blocked)
    assert CommandValidator.format_brief_report(blocked).endswith("Levels: 1 | risk:0")
