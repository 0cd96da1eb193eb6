from guardrails.command_validator import CommandValidator
from tests.factories import at, make_command

REQUEST = "напомни через 5 минут купить молоко"


def test_small_deviation_passes_and_adds_risk(command_validator: CommandValidator) -> None:
    result = command_validator.validate(make_command(scheduled_at=at(minutes=7)), REQUEST)
    assert not result.blocked
    assert result.metadata.levels_passed == [1, 2, 3, 4, 5]
    assert result.risk_score == 2
    deviation = next(check for check in result.checks if check.name == "TIME_DEVIATION")
    assert deviation.details["deviation_minutes"] == 2.0


def test_large_deviation_blocks(command_validator: CommandValidator) -> None:
    result = command_validator.validate(make_command(scheduled_at=at(minutes=20)), REQUEST)
    assert result.blocked
    assert result.blocked_at_level == 3
    error = result.errors[0]
    assert error.code == "TIME_DEVIATION_EXCEEDED"
    assert error.details["deviation_minutes"] == 15
    assert error.details["requested"] == at(minutes=5)
    assert error.details["created"] == at(minutes=20)
    assert result.metadata.levels_passed == [1, 2]


def test_threshold_override(command_validator: CommandValidator) -> None:
    result = command_validator.validate(
        make_command(scheduled_at=at(minutes=20)),
        REQUEST,
        {"time_deviation_threshold_minutes": 20},
    )
    assert not result.blocked
    assert result.risk_score == 15
    assert result.risk_level == "medium"


def test_unparseable_request_skips_time_check(command_validator: CommandValidator) -> None:
    result = command_validator.validate(make_command(scheduled_at=at(days=3)), "купить молоко")
    assert not result.blocked
    deviation = next(check for check in result.checks if check.name == "TIME_DEVIATION")
    assert deviation.details["skipped"] is True


def test_missing_request_makes_context_level_a_no_op(command_validator: CommandValidator) -> None:
    result = command_validator.validate(make_command(), None)
    context_checks = [check for check in result.checks if check.level == 3]
    assert [check.name for check in context_checks] == ["CONTEXT_VALIDATION"]
    assert context_checks[0].details["skipped"] is True
    assert 3 in result.metadata.levels_passed


def test_low_relevance_only_warns(command_validator: CommandValidator) -> None:
    result = command_validator.validate(
        make_command(), "напомни позвонить маме насчёт дачи завтра"
    )
    assert not result.blocked
    warning = result.warnings[0]
    assert warning.code == "LOW_CONTENT_RELEVANCE"
    assert warning.details["relevance_score"] == "0%"
    assert warning.details["common_words"] == []
    assert result.risk_score == 5


def test_short_requests_never_flagged_for_relevance(command_validator: CommandValidator) -> None:
    result = command_validator.validate(make_command(), "позвонить маме")
    assert result.warnings == []
