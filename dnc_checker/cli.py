"""Command line interface for running batches, exporting results and serving the relay."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from .config import ConfigurationError
from .factory import build_lookup_client, build_state_store, load_settings
from .ingestion import NothingToExportError, export_bucket_text, export_results, load_numbers
from .models import BUCKETS, LookupResult
from .orchestrator import BatchOrchestrator, CallbackObserver
from .phone import SAMPLE_NUMBERS, normalize_tokens, parse_numbers
from .rate_limit import DelayPolicy
from .storage import load_saved_state

LOGGER = logging.getLogger(__name__)


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description="Check phone numbers against DNC/TCPA lookup services")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Check a batch of phone numbers")
    check.add_argument("input", nargs="?", help="Optional text, CSV or Excel file with phone numbers")
    check.add_argument("--numbers", help="Numbers separated by commas, whitespace or newlines")
    check.add_argument("--sample", action="store_true", help="Check the built-in sample numbers")
    check.add_argument("--column", help="Column holding the numbers when INPUT is a spreadsheet")
    _add_settings_arguments(check)
    check.add_argument("--relay-url", help="Route lookups through a relay proxy at this base URL")
    check.add_argument("--output", help="Write every result to this CSV or XLSX file")
    check.add_argument("--export-dir", help="Write one text file per non-empty bucket into this directory")

    export = subparsers.add_parser("export", help="Export one bucket of the saved results")
    export.add_argument("bucket", choices=BUCKETS, help="Which bucket to export")
    _add_settings_arguments(export)
    export.add_argument("--export-dir", default=".", help="Directory to write the text file into")

    relay = subparsers.add_parser("relay", help="Run the HTTP relay proxy")
    relay.add_argument("--host", default=None, help="Interface to bind (defaults to $HOST or 0.0.0.0)")
    relay.add_argument("--port", type=int, default=None, help="Port to listen on (defaults to $PORT or 3000)")
    return parser


def _add_settings_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to a YAML or JSON configuration file")
    parser.add_argument("--state-file", help="Where the batch state is persisted")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _collect_numbers(args: argparse.Namespace) -> List[str]:
    tokens: List[str] = []
    if args.input:
        tokens.extend(load_numbers(args.input, column=args.column))
    if args.numbers:
        tokens.extend(parse_numbers(args.numbers))
    if args.sample:
        tokens.extend(SAMPLE_NUMBERS)
    return normalize_tokens(tokens)


def _load_settings(args: argparse.Namespace):
    settings = load_settings(args.config)
    if args.state_file:
        settings.state_file = Path(args.state_file)
    if getattr(args, "relay_url", None):
        settings.relay_url = args.relay_url
    return settings


def _log_result(result: LookupResult) -> None:
    LOGGER.debug("%s -> %s", result.number, result.status.value)


def _log_progress(current: int, total: int) -> None:
    LOGGER.info("Checked %s/%s numbers", current, total)


def run_check(args: argparse.Namespace) -> int:
    numbers = _collect_numbers(args)
    if not numbers:
        LOGGER.warning("Please enter some phone numbers")
        return 0

    settings = _load_settings(args)
    observer = CallbackObserver(result_callback=_log_result, progress_callback=_log_progress)
    with build_lookup_client(settings) as client:
        orchestrator = BatchOrchestrator(
            client,
            store=build_state_store(settings),
            observer=observer,
            request_delay=DelayPolicy(settings.request_delay_seconds),
        )
        summary = orchestrator.run(numbers)

    if summary is None:
        return 0
    print(summary.format_message())

    results = orchestrator.state.results
    if args.output:
        destination = export_results(results, args.output)
        LOGGER.info("Results written to %s", destination.resolve())
    if args.export_dir:
        for bucket in BUCKETS:
            if results.bucket(bucket):
                destination = export_bucket_text(results, bucket, args.export_dir)
                LOGGER.info("Exported %s numbers to %s", bucket, destination.resolve())
    return 0


def run_export(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    saved = load_saved_state(build_state_store(settings))
    if saved is None or saved.results is None:
        LOGGER.error("No recent results to export")
        return 1
    try:
        destination = export_bucket_text(saved.results, args.bucket, args.export_dir)
    except NothingToExportError as exc:
        LOGGER.error("%s", exc)
        return 1
    print(destination)
    return 0


def run_relay(args: argparse.Namespace) -> int:
    from .relay import serve

    serve(host=args.host, port=args.port, log_level=args.log_level)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    handlers = {"check": run_check, "export": run_export, "relay": run_relay}
    try:
        return handlers[args.command](args)
    except ConfigurationError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
