import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from scripts import validate_command, validate_output, validator_admin


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def test_validate_output_blocks_fake_capability(config_file: Path, capsys) -> None:
    exit_code = validate_output.main(
        ["--config", str(config_file), "--quiet", "--text", "Я могу позвонить в ресторан для тебя"]
    )
    verdict = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert verdict["reason"] == "fake_capability"
    assert verdict["blocked"] is True

    rule_db = json.loads((config_file.parent / "state" / "rule_db.json").read_text(encoding="utf-8"))
    assert rule_db["stats"]["by_reason"] == {"fake_capability": 1}
    assert rule_db["block_log"][0]["matched_pattern"] == "могу позвонить"


def test_validate_output_batch_summary(config_file: Path, tmp_path: Path, capsys) -> None:
    records = tmp_path / "replies.jsonl"
    records.write_text(
        "\n".join(
            json.dumps(record, ensure_ascii=False)
            for record in (
                {"text": "Хорошо, записал."},
                {"text": "Поверь мне, всё получится"},
            )
        ),
        encoding="utf-8",
    )
    output = tmp_path / "results.jsonl"
    exit_code = validate_output.main(
        [
            "--config", str(config_file), "--quiet",
            "--input-jsonl", str(records),
            "--output", str(output),
        ]
    )
    summary = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert summary == {"total": 2, "blocked": 1, "passed": 1}
    assert len(output.read_text(encoding="utf-8").splitlines()) == 2


def test_validate_command_writes_execution_log(config_file: Path, tmp_path: Path, capsys) -> None:
    scheduled_at = datetime.now(timezone.utc) + timedelta(hours=1)
    command_path = tmp_path / "command.json"
    command_path.write_text(
        json.dumps(
            {
                "id": "cmd-42",
                "title": "Купить молоко",
                "scheduled_at": scheduled_at.isoformat(),
                "action_type": "push",
                "sense_type": "reminder",
                "runtime_type": "scheduled",
            }
        ),
        encoding="utf-8",
    )
    exit_code = validate_command.main(
        ["--config", str(config_file), "--quiet", "--command", str(command_path)]
    )
    out = capsys.readouterr().out
    assert exit_code == 0
    assert "[Validator] PASS | Levels: 1→2→3→4→5" in out

    log_path = config_file.parent / "state" / "execution_log.json"
    entries = json.loads(log_path.read_text(encoding="utf-8"))
    assert [entry["command_id"] for entry in entries] == ["cmd-42"]


def test_validate_command_blocks_past_time(config_file: Path, tmp_path: Path, capsys) -> None:
    command_path = tmp_path / "command.json"
    command_path.write_text(
        json.dumps(
            {
                "title": "Купить молоко",
                "scheduled_at": "2020-01-01T10:00:00Z",
                "action_type": "push",
                "sense_type": "reminder",
            }
        ),
        encoding="utf-8",
    )
    exit_code = validate_command.main(
        ["--config", str(config_file), "--quiet", "--command", str(command_path), "--quick"]
    )
    out = capsys.readouterr().out
    assert exit_code == 1
    assert "TIME_IN_PAST" in out
    assert not (config_file.parent / "state" / "execution_log.json").exists()


def test_admin_learns_exports_and_resets(config_file: Path, tmp_path: Path, capsys) -> None:
    base = ["--config", str(config_file), "--quiet"]

    assert validator_admin.main(base + ["add-bad", "Скидка только сегодня"]) == 0
    assert json.loads(capsys.readouterr().out) == {"changed": True}
    assert validator_admin.main(base + ["add-bad", "скидка только сегодня"]) == 1
    capsys.readouterr()

    validator_admin.main(base + ["stats"])
    assert json.loads(capsys.readouterr().out)["learned_bad_count"] == 1

    export_path = tmp_path / "export.json"
    assert validator_admin.main(base + ["export", "--output", str(export_path)]) == 0
    exported = json.loads(export_path.read_text(encoding="utf-8"))
    assert exported["learned_bad_patterns"] == ["скидка только сегодня"]

    assert validator_admin.main(base + ["reset"]) == 0
    validator_admin.main(base + ["stats"])
    assert json.loads(capsys.readouterr().out)["learned_bad_count"] == 0

    assert validator_admin.main(base + ["import", str(export_path)]) == 0
    validator_admin.main(base + ["stats"])
    assert json.loads(capsys.readouterr().out)["learned_bad_count"] == 1


def test_admin_logs_round_trip(config_file: Path, capsys) -> None:
    base = ["--config", str(config_file), "--quiet"]
    validator_admin.main(base + ["logs"])
    assert json.loads(capsys.readouterr().out) == []
    assert validator_admin.main(base + ["clear-logs"]) == 0
