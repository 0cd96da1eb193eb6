"""
Validator configuration schemas.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field


class OutputConfig(BaseModel):
    """Limits for the free-text output gate."""
    max_input_length: int = Field(default=500, gt=0)
    max_output_length: int = Field(default=2000, gt=0)
    long_response_length: int = Field(default=500, gt=0)
    max_assertions: int = Field(default=5, ge=0)
    learned_pattern_limit: int = Field(default=200, gt=0)
    block_log_limit: int = Field(default=100, gt=0)
    stats_flush_interval: int = Field(default=10, gt=0)
    min_pattern_length: int = Field(default=3, gt=0)


class CommandConfig(BaseModel):
    """Thresholds for the command pipeline."""
    time_deviation_threshold_minutes: float = Field(default=5, ge=0)
    max_schedule_days_ahead: int = Field(default=365, gt=0)
    far_ahead_warning_days: int = Field(default=30, gt=0)
    past_tolerance_seconds: int = Field(default=30, ge=0)
    max_title_length: int = Field(default=500, gt=0)
    max_content_length: int = Field(default=5000, gt=0)
    execution_log_limit: int = Field(default=100, gt=0)
    verbose_logging: bool = True


class StorageConfig(BaseModel):
    """Where persisted state lives. Unset paths keep state in memory."""
    rule_db_path: Optional[Path] = None
    execution_log_path: Optional[Path] = None


class ValidatorConfig(BaseModel):
    """Top-level validator configuration."""
    output: OutputConfig = Field(default_factory=OutputConfig)
    command: CommandConfig = Field(default_factory=CommandConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ValidatorConfig":
        """Load config from a YAML file; relative storage paths resolve against it."""
        config_path = Path(path)
        if not config_path.exists():
            raise RuntimeError(f"Config file not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
        if not isinstance(payload, dict):
            raise RuntimeError(f"Config file must contain a mapping: {config_path}")

        config = cls.model_validate(payload)
        base_dir = config_path.resolve().parent
        storage = config.storage
        if storage.rule_db_path and not storage.rule_db_path.is_absolute():
            storage.rule_db_path = base_dir / storage.rule_db_path
        if storage.execution_log_path and not storage.execution_log_path.is_absolute():
            storage.execution_log_path = base_dir / storage.execution_log_path
        return config
