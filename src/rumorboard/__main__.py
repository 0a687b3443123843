"""CLI entry-point: ``python -m rumorboard run``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rumorboard import config
from rumorboard.board import FORMATS
from rumorboard.errors import RumorboardError
from rumorboard.models import StatusTier
from rumorboard.pipeline import run_pipeline
from rumorboard.query import SORT_KEYS

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="rumorboard",
        description="Score transfer rumors and build a board of featured posts.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── run ────────────────────────────────────────────────────────────
    run_parser = sub.add_parser("run", help="Load, score and render the rumor board.")
    run_parser.add_argument(
        "--source",
        help="Batch file path or http(s) URL (default: RUMORBOARD_SOURCE or data/).",
    )
    run_parser.add_argument(
        "--featured",
        action="store_true",
        default=None,
        help="Use the pre-stamped featured variant of the bundled batch file.",
    )
    run_parser.add_argument(
        "--rescore",
        action="store_true",
        default=None,
        help="Ignore pre-selected featured posts and score every record.",
    )
    run_parser.add_argument(
        "--relax-destination",
        action="store_true",
        default=None,
        help="Do not require a post's destination to match the record's.",
    )
    run_parser.add_argument("--now", help="ISO-8601 timestamp to treat as 'now'.")
    run_parser.add_argument("--tuning", type=Path, help="Path to a tuning YAML file.")
    run_parser.add_argument("--search", help="Case-insensitive player/club filter.")
    run_parser.add_argument(
        "--status",
        choices=[tier.value for tier in StatusTier],
        help="Only show records with this status.",
    )
    run_parser.add_argument("--sort", choices=SORT_KEYS, default="hotness")
    run_parser.add_argument(
        "--recent",
        action="store_true",
        help="Use 7-day hotness instead of all-time hotness.",
    )
    run_parser.add_argument("--limit", type=int, help="Keep only the first N records.")
    run_parser.add_argument("--format", choices=FORMATS, default="md", dest="fmt")
    run_parser.add_argument("--out", type=Path, help="Output directory for the board file.")
    run_parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the board instead of writing a file.",
    )
    run_parser.add_argument("-v", "--verbose", action="store_true")

    args = parser.parse_args(argv)

    if args.command != "run":
        parser.print_help()
        sys.exit(1)

    try:
        options = config.engine_options(
            force_rescore=args.rescore,
            relax_destination=args.relax_destination,
            now=args.now,
        )
    except ValueError as exc:
        parser.error(str(exc))

    try:
        run_pipeline(
            source=args.source,
            featured=args.featured,
            options=options,
            tuning_path=args.tuning,
            search=args.search,
            status=args.status,
            sort=args.sort,
            recent=args.recent,
            limit=args.limit,
            fmt=args.fmt,
            output_dir=args.out,
            to_stdout=args.stdout,
            verbose=args.verbose,
        )
    except RumorboardError as exc:
        logger.error("Rumor board could not be built: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
