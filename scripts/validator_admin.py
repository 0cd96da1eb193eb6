"""
Administrative access to the rule database and the execution log.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from guardrails.command_validator import CommandValidator
from guardrails.output_validator import OutputValidator
from scripts.io_utils import RUNTIME_LOG_DIR, dump_json, load_config
from scripts.logging_utils import configure_logging

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="Inspect and maintain validator state.")
    parser.add_argument("--config", help="Path to validator configuration YAML.")
    parser.add_argument("--quiet", action="store_true", help="Only log errors.")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to logs/ with timestamped filenames.",
    )
    sub = parser.add_subparsers(dest="action", required=True)

    sub.add_parser("stats", help="Show output gate statistics.")
    export = sub.add_parser("export", help="Export the rule database as JSON.")
    export.add_argument("--output", help="File to write; stdout when omitted.")
    imported = sub.add_parser("import", help="Import a rule database JSON export.")
    imported.add_argument("path", help="JSON file produced by export.")
    sub.add_parser("reset", help="Reset the rule database to the shipped defaults.")
    sub.add_parser("logs", help="Show the command execution log.")
    sub.add_parser("clear-logs", help="Remove all execution log entries.")

    for name, help_text in (
        ("add-bad", "Learn a pattern that must be blocked."),
        ("add-good", "Learn a pattern that is always allowed."),
        ("remove-bad", "Forget a learned bad pattern."),
    ):
        learn = sub.add_parser(name, help=help_text)
        learn.add_argument("pattern")
        learn.add_argument("--source", default="admin", help="Who taught the pattern.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    log_file = configure_logging(RUNTIME_LOG_DIR, args.debug, "validator_admin", quiet=args.quiet)
    if log_file:
        LOGGER.info("Debug log file: %s", log_file)

    config = load_config(args.config)
    output_validator = OutputValidator.from_config(config)

    if args.action == "stats":
        print(dump_json(output_validator.get_stats()))
    elif args.action == "export":
        payload = output_validator.export_db()
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            LOGGER.info("Rule database exported to %s", args.output)
        else:
            print(payload)
    elif args.action == "import":
        output_validator.import_db(Path(args.path).read_text(encoding="utf-8"))
    elif args.action == "reset":
        output_validator.reset_db()
    elif args.action in ("logs", "clear-logs"):
        validator = CommandValidator.from_config(config)
        if args.action == "logs":
            print(dump_json([entry.model_dump() for entry in validator.get_logs()]))
        else:
            validator.clear_logs()
    else:
        if args.action == "add-bad":
            changed = output_validator.add_bad_pattern(args.pattern, args.source)
        elif args.action == "add-good":
            changed = output_validator.add_good_pattern(args.pattern, args.source)
        else:
            changed = output_validator.remove_bad_pattern(args.pattern)
        print(dump_json({"changed": changed}))
        return 0 if changed else 1
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        LOGGER.exception("Validator admin command failed.")
        raise
