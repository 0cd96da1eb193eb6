import json
from pathlib import Path

from guardrails.execution_log import ExecutionLog
from guardrails.storage import JsonStore
from schemas.result import ExecutionLogEntry


def make_entry(command_id: str) -> ExecutionLogEntry:
    return ExecutionLogEntry(
        command_id=command_id,
        command_title="Купить молоко",
        command_type="reminder/scheduled",
        validation_passed=True,
        risk_score=0,
        approval_required=False,
        checked_at="2026-03-10T12:00:00+00:00",
        checks_count=12,
        warnings_count=0,
    )


def test_entries_persist_to_disk(tmp_path: Path) -> None:
    path = tmp_path / "log.json"
    ExecutionLog(JsonStore(path)).append(make_entry("cmd-1"))

    reopened = ExecutionLog(JsonStore(path))
    assert [entry.command_id for entry in reopened.entries()] == ["cmd-1"]
    assert json.loads(path.read_text(encoding="utf-8"))[0]["command_type"] == "reminder/scheduled"


def test_corrupt_log_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "log.json"
    path.write_text("{not json", encoding="utf-8")
    log = ExecutionLog(JsonStore(path))
    assert log.entries() == []

    log.append(make_entry("cmd-2"))
    assert [entry.command_id for entry in log.entries()] == ["cmd-2"]


def test_malformed_records_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "log.json"
    good = make_entry("cmd-3").model_dump()
    path.write_text(json.dumps([{"command_id": "broken"}, good]), encoding="utf-8")
    assert [entry.command_id for entry in ExecutionLog(JsonStore(path)).entries()] == ["cmd-3"]


def test_clear_removes_file(tmp_path: Path) -> None:
    path = tmp_path / "log.json"
    log = ExecutionLog(JsonStore(path))
    log.append(make_entry("cmd-4"))
    log.clear()
    assert not path.exists()
    assert log.entries() == []


def test_unwritable_store_does_not_raise(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    log = ExecutionLog(JsonStore(blocker / "log.json"))
    log.append(make_entry("cmd-5"))
    assert log.entries() == []
