from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from azdosync.app import convert_manifest, run_controllers
from azdosync.config import (
    ConfigurationError,
    ControllerConfig,
    configure_logging,
    get_controller_config,
    parse_duration,
)
from azdosync.domain.conversion import LEGACY_VERSION, STORAGE_VERSION

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

_stop_event = threading.Event()


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Keep Azure DevOps resources in sync with declarative records"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Reconcile the records of a manifest directory")
    run.add_argument(
        "--manifests",
        type=Path,
        required=True,
        help="Directory of JSON manifests to load into the object store",
    )
    run.add_argument(
        "--once",
        action="store_true",
        help="Reconcile every record once and exit",
    )
    run.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    run.add_argument(
        "--poll",
        type=str,
        help="Interval between passes over healthy records, e.g. 2m (defaults to config)",
    )
    run.add_argument(
        "--max-reconcile-rate",
        type=int,
        help="Worker threads per resource kind (defaults to config)",
    )
    run.add_argument(
        "--min-error-retry-interval",
        type=str,
        help="First retry delay after a failed pass, e.g. 1s (defaults to config)",
    )
    run.add_argument(
        "--max-error-retry-interval",
        type=str,
        help="Upper bound of the retry delay, e.g. 1m (defaults to config)",
    )

    conv = subparsers.add_parser("convert", help="Convert PipelinePermission manifests")
    conv.add_argument("file", type=Path, help="Manifest file holding the records to convert")
    conv.add_argument(
        "--manifests",
        type=Path,
        required=True,
        help="Directory of JSON manifests used for lookups",
    )
    conv.add_argument(
        "--to",
        dest="to_version",
        choices=(STORAGE_VERSION, LEGACY_VERSION),
        required=True,
        help="Target version",
    )

    return parser.parse_args(list(argv))


def _controller_config(args: argparse.Namespace) -> ControllerConfig:
    config = get_controller_config()
    overrides: dict[str, object] = {}
    if args.poll is not None:
        overrides["poll_interval"] = parse_duration(args.poll)
    if args.max_reconcile_rate is not None:
        overrides["max_reconcile_rate"] = args.max_reconcile_rate
    if args.min_error_retry_interval is not None:
        overrides["min_error_retry_interval"] = parse_duration(args.min_error_retry_interval)
    if args.max_error_retry_interval is not None:
        overrides["max_error_retry_interval"] = parse_duration(args.max_error_retry_interval)
    if args.debug:
        overrides["debug"] = True
    return replace(config, **overrides) if overrides else config  # type: ignore[arg-type]


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    config: ControllerConfig | None = None
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "run":
            config = _controller_config(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    if config is not None and config.debug:
        configure_logging(level=logging.DEBUG, force=True)

    try:
        if config is not None:
            results = run_controllers(
                parsed_args.manifests, config, once=parsed_args.once, stop_event=_stop_event
            )
            if parsed_args.once and any(result.error is not None for result in results.values()):
                sys.exit(1)
        elif parsed_args.command == "convert":
            converted = convert_manifest(
                parsed_args.file, parsed_args.manifests, parsed_args.to_version
            )
            output = converted[0] if len(converted) == 1 else converted
            sys.stdout.write(json.dumps(output, indent=2) + "\n")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    if _stop_event.is_set():
        sys.exit(0)
    _stop_event.set()


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
