"""
Command schemas for scheduled reminders, assignments and actions.

Enumerated fields are kept as plain strings on the model so that an unknown
value reaches the syntax level and is reported there instead of failing model
construction. The Literal aliases below are the source of truth for the known
values.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict

SenseType = Literal["reminder", "assignment", "action", "management"]
RuntimeType = Literal["instant", "scheduled", "scripted"]
RelationType = Literal["user", "system"]
ActionType = Literal["push", "email", "telegram", "webhook", "tts", "sms"]
CommandStatus = Literal[
    "pending", "in_progress", "completed", "cancelled", "failed", "awaiting_approval"
]
Actor = Literal["user", "aski", "cortex", "homer", "system"]

SENSE_TYPES: tuple[str, ...] = get_args(SenseType)
RUNTIME_TYPES: tuple[str, ...] = get_args(RuntimeType)
RELATION_TYPES: tuple[str, ...] = get_args(RelationType)
ACTION_TYPES: tuple[str, ...] = get_args(ActionType)
COMMAND_STATUSES: tuple[str, ...] = get_args(CommandStatus)
KNOWN_ACTORS: tuple[str, ...] = get_args(Actor)

# (field, human label) in the order they are reported when missing
REQUIRED_FIELDS: tuple[tuple[str, str], ...] = (
    ("title", "Заголовок"),
    ("scheduled_at", "Время выполнения"),
    ("action_type", "Тип действия"),
    ("sense_type", "Тип команды"),
)


class Command(BaseModel):
    """Candidate scheduled command produced by the assistant."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    user_id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    scheduled_at: Optional[Union[datetime, str]] = None
    action_type: Optional[str] = None
    sense_type: Optional[str] = None
    runtime_type: Optional[str] = None
    relation_type: Optional[str] = None
    status: Optional[str] = None
    creator: Optional[str] = None
    acceptor: Optional[str] = None
    controller: Optional[str] = None

    @property
    def is_instant(self) -> bool:
        return self.runtime_type == "instant"

    @property
    def command_type(self) -> str:
        return f"{self.sense_type}/{self.runtime_type or 'unspecified'}"


class ValidateOptions(BaseModel):
    """Per-call overrides for the command pipeline."""
    now: Optional[datetime] = None
    time_deviation_threshold_minutes: Optional[float] = None
