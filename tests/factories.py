"""
Shared test data: a fixed clock and a valid reminder command.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def at(**delta) -> str:
    """ISO timestamp relative to the fixed test clock."""
    return (NOW + timedelta(**delta)).isoformat()


def make_command(**overrides) -> dict:
    command = {
        "title": "Купить молоко",
        "scheduled_at": at(hours=1),
        "action_type": "push",
        "sense_type": "reminder",
        "runtime_type": "scheduled",
    }
    command.update(overrides)
    return command
