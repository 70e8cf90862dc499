#!/usr/bin/env python3
"""Download high-resolution covers of book NFTs minted under a policy id."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from cover_collector.config import DEFAULT_GATEWAY_BASE, load_settings
from cover_collector.exceptions import (
    EXIT_OK,
    EXIT_PARTIAL_FAILURE,
    CoverCollectorError,
)
from cover_collector.logging_config import add_logging_args, configure_logging
from cover_collector.models import AssetOutcome, RunSummary
from cover_collector.orchestrator import CoverFetchOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILES = 10
EXIT_UNEXPECTED = 1


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="book-covers",
        description="Download high-res book cover images for a policy id.",
    )
    parser.add_argument("policy_id", nargs="?", help="Policy id of the book collection (mandatory).")
    parser.add_argument(
        "work_dir",
        nargs="?",
        default=".",
        help="Directory where covers are stored (default: current directory).",
    )
    parser.add_argument(
        "max_files",
        nargs="?",
        type=_positive_int,
        default=DEFAULT_MAX_FILES,
        help=f"Maximum number of files to download (default: {DEFAULT_MAX_FILES}).",
    )
    parser.add_argument(
        "gateway_base",
        nargs="?",
        default=None,
        help=f"IPFS gateway base URL (default: {DEFAULT_GATEWAY_BASE}).",
    )
    parser.add_argument("--config", type=Path, default=None, help="Optional YAML settings file.")
    parser.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=None,
        help="Assets handled per chunk (default: 10).",
    )
    add_logging_args(parser)
    return parser


def _print_summary(summary: RunSummary) -> None:
    outcomes = summary.outcomes
    print(
        f"{summary.files_counted}/{summary.max_files} covers in place "
        f"({outcomes[AssetOutcome.DOWNLOADED]} downloaded, "
        f"{outcomes[AssetOutcome.ALREADY_PRESENT]} already present, "
        f"{outcomes[AssetOutcome.DUPLICATE]} duplicates, "
        f"{outcomes[AssetOutcome.NO_COVER]} without cover)"
    )
    for asset, error in summary.failures:
        print(f"failed: {asset}: {error}")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    if not args.policy_id:
        parser.print_help()
        return EXIT_OK

    configure_logging(level=args.log_level, fmt=args.log_format)
    work_dir = Path(args.work_dir).expanduser()
    try:
        settings = load_settings(args.config).with_overrides(
            gateway_base=args.gateway_base,
            chunk_size=args.chunk_size,
        )
        print(f"work dir {str(work_dir)!r}")
        orchestrator = CoverFetchOrchestrator.from_settings(settings, work_dir=work_dir)
        summary = orchestrator.run(args.policy_id, args.max_files)
    except CoverCollectorError as exc:
        logger.debug("Run aborted", extra=exc.as_log_fields())
        print(f"error: {exc.message.splitlines()[0]}", file=sys.stderr)
        return exc.exit_code
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_UNEXPECTED

    _print_summary(summary)
    return EXIT_PARTIAL_FAILURE if summary.failures else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
