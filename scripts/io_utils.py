"""
Shared helpers for the validator CLIs.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from schemas.config import ValidatorConfig

ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = ROOT_DIR / "configs" / "validator_config.yaml"
RUNTIME_LOG_DIR = ROOT_DIR / "logs"


def load_config(path: Optional[str]) -> ValidatorConfig:
    """Load the YAML config, or the shipped default when no path is given."""
    return ValidatorConfig.from_yaml(path or DEFAULT_CONFIG_PATH)


def load_json(path: Path) -> Any:
    if not path.exists():
        raise RuntimeError(f"File not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def load_jsonl(path: Path) -> list[dict]:
    """Load JSONL file into a list of dicts."""
    if not path.exists():
        raise RuntimeError(f"File not found: {path}")
    records: list[dict] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line:
                continue
            records.append(json.loads(line))
    return records


def save_jsonl(path: Path, records: list[dict]) -> None:
    """Save records to JSONL."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        for record in records:
            handle.write(json.dumps(record, ensure_ascii=False) + "\n")


def dump_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)
