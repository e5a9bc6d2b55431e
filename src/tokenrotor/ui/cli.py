from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from tokenrotor.app import (
    record_vote,
    refresh_listings,
    rotate_listings,
    serve,
    vet_pending,
)
from tokenrotor.config import ConfigurationError, configure_logging, parse_token_key
from tokenrotor.domain.refresh import CycleStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain rotating token listings")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("refresh", help="Run one refresh cycle")
    subparsers.add_parser("rotate", help="Wipe non-pinned listings and repopulate them")

    vet = subparsers.add_parser("vet", help="Dispatch vetting for unvetted tokens")
    vet.add_argument(
        "--limit",
        type=int,
        help="Maximum number of tokens to dispatch (defaults to config)",
    )

    serve_cmd = subparsers.add_parser("serve", help="Run the periodic jobs until interrupted")
    serve_cmd.add_argument(
        "--max-runs",
        type=int,
        help="Stop each job after this many runs",
    )

    vote = subparsers.add_parser("vote", help="Record a community score from user votes")
    vote.add_argument("token", type=str, help="Token key as CHAIN:address")
    vote.add_argument("score", type=float, help="Community score between 0 and 100")

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command == "vet" and args.limit is not None and args.limit < 1:
        raise ValueError("--limit must be positive")
    if args.command == "serve" and args.max_runs is not None and args.max_runs < 1:
        raise ValueError("--max-runs must be positive")
    if args.command == "vote":
        if not 0.0 <= args.score <= 100.0:
            raise ValueError("Score must be between 0 and 100")
        args.token = parse_token_key(args.token)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else None)
        _validate(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "refresh":
            result = refresh_listings()
            if result.status is CycleStatus.FAILED:
                sys.exit(1)
        elif parsed_args.command == "rotate":
            result = rotate_listings()
            if result.status is CycleStatus.FAILED:
                sys.exit(1)
        elif parsed_args.command == "vet":
            summary = vet_pending(limit=parsed_args.limit)
            log.info("Dispatched vetting for %d tokens", summary.dispatched)
        elif parsed_args.command == "serve":
            serve(max_runs=parsed_args.max_runs)
        elif parsed_args.command == "vote":
            record_vote(parsed_args.token, parsed_args.score)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
