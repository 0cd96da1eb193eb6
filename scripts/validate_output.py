"""
Run assistant replies through the output gate.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from guardrails.output_validator import OutputValidator
from scripts.io_utils import RUNTIME_LOG_DIR, dump_json, load_config, load_jsonl, save_jsonl
from scripts.logging_utils import configure_logging

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Validate assistant output against the moderation rule database."
    )
    parser.add_argument("--config", help="Path to validator configuration YAML.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", help="Single reply to validate.")
    source.add_argument(
        "--input-jsonl",
        help="JSONL of {text, history?, feed?} records to validate in batch.",
    )
    parser.add_argument(
        "--output",
        help="Where to write batch results (JSONL). Defaults to stdout summary only.",
    )
    parser.add_argument(
        "--input-gate",
        action="store_true",
        help="Apply the user-input length gate instead of the output checks.",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log errors.")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to logs/ with timestamped filenames.",
    )
    return parser.parse_args(argv)


def validate_records(validator: OutputValidator, records: list[dict], input_gate: bool) -> list[dict]:
    results = []
    for record in records:
        text = record.get("text", "")
        if input_gate:
            verdict = validator.validate_input(text)
        else:
            context = {"history": record.get("history", []), "feed": record.get("feed", [])}
            verdict = validator.validate_output(text, context)
        results.append(verdict.model_dump())
    return results


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    log_file = configure_logging(RUNTIME_LOG_DIR, args.debug, "validate_output", quiet=args.quiet)
    if log_file:
        LOGGER.info("Debug log file: %s", log_file)

    validator = OutputValidator.from_config(load_config(args.config))

    if args.text is not None:
        records = [{"text": args.text}]
    else:
        records = load_jsonl(Path(args.input_jsonl))

    results = validate_records(validator, records, args.input_gate)
    validator.database.save()
    blocked = sum(1 for result in results if result["blocked"])

    if args.output:
        save_jsonl(Path(args.output), results)
        LOGGER.info("Wrote %s results to %s", len(results), args.output)
    if args.text is not None:
        print(dump_json(results[0]))
    else:
        print(dump_json({"total": len(results), "blocked": blocked, "passed": len(results) - blocked}))
    return 1 if blocked else 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        LOGGER.exception("Output validation failed.")
        raise
