"""
Run an assistant-generated command through the cascading command validator.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from guardrails.command_validator import CommandValidator
from scripts.io_utils import RUNTIME_LOG_DIR, dump_json, load_config, load_json
from scripts.logging_utils import configure_logging

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Validate a scheduled command through syntax, logic, context, approval and audit levels."
    )
    parser.add_argument("--config", help="Path to validator configuration YAML.")
    parser.add_argument(
        "--command",
        required=True,
        help="Path to a JSON file holding the command object.",
    )
    parser.add_argument(
        "--request",
        default=None,
        help="Original user utterance that produced the command.",
    )
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Run only the syntax and logic levels.",
    )
    parser.add_argument(
        "--threshold-minutes",
        type=float,
        default=None,
        help="Override the allowed deviation from the requested time.",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log errors.")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to logs/ with timestamped filenames.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    log_file = configure_logging(RUNTIME_LOG_DIR, args.debug, "validate_command", quiet=args.quiet)
    if log_file:
        LOGGER.info("Debug log file: %s", log_file)

    validator = CommandValidator.from_config(load_config(args.config))
    command = load_json(Path(args.command))

    if args.quick:
        result = validator.quick_validate(command)
    else:
        options = {"time_deviation_threshold_minutes": args.threshold_minutes}
        result = validator.validate(command, args.request, options)

    print(dump_json(result.model_dump(mode="json")))
    print(CommandValidator.format_brief_report(result))
    print(CommandValidator.format_for_user(result))
    return 1 if result.blocked else 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        LOGGER.exception("Command validation failed.")
        raise
