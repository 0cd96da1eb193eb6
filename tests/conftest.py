from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from guardrails.command_validator import CommandValidator
from guardrails.execution_log import ExecutionLog
from guardrails.output_validator import OutputValidator
from guardrails.rule_database import RuleDatabase
from tests.factories import NOW


@pytest.fixture
def database() -> RuleDatabase:
    return RuleDatabase()


@pytest.fixture
def output_validator(database: RuleDatabase) -> OutputValidator:
    return OutputValidator(database)


@pytest.fixture
def execution_log() -> ExecutionLog:
    return ExecutionLog()


@pytest.fixture
def command_validator(execution_log: ExecutionLog) -> CommandValidator:
    return CommandValidator(execution_log=execution_log, clock=lambda: NOW)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Validator config whose persisted state lives under tmp_path."""
    path = tmp_path / "validator_config.yaml"
    payload = {
        "command": {"verbose_logging": False},
        "storage": {
            "rule_db_path": "state/rule_db.json",
            "execution_log_path": "state/execution_log.json",
        },
    }
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path
