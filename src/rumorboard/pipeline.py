"""Pipeline orchestration: load → normalise → filter → hotness → feature → render."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from rumorboard import config
from rumorboard.board import render, write_board
from rumorboard.clubs import ClubIndex
from rumorboard.engagement import record_raw_score
from rumorboard.featured import pick_featured_post
from rumorboard.loader import FeedClient, load_records
from rumorboard.models import Club, EngineOptions, Record
from rumorboard.normalize import raw_post_count, record_from_raw
from rumorboard.query import apply_query
from rumorboard.stats import hotness_scores, recent_hotness, recent_raw_scores
from rumorboard.tuning import DEFAULT_TUNING, Tuning, load_tuning

logger = logging.getLogger(__name__)

MEGACLUSTER_POST_CAP = 80


def _setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def has_identity(record: Record) -> bool:
    """A record needs a player or at least one club to mean anything."""
    return bool(record.player_key or record.origin.name or record.destination.name)


def _with_featured(record: Record, index: ClubIndex, options: EngineOptions, tuning: Tuning) -> Record:
    """Attach the featured post plus the destination it implies."""
    post = pick_featured_post(record, options, tuning)

    dest_name = None
    if post is not None:
        dest_name = post.destination_club or index.infer_destination(post, record.origin.key)
    dest_name = dest_name or record.destination.name

    dest_logo = (
        (post.destination_logo_url if post is not None else None)
        or index.logo_for(dest_name)
        or record.destination.logo_url
        or config.FALLBACK_CLUB_LOGO
    )
    return record.model_copy(
        update={
            "selected_post": post,
            "display_destination": dest_name,
            "display_destination_logo_url": dest_logo,
        }
    )


def _with_asset_fallbacks(record: Record) -> Record:
    def club(c: Club) -> Club:
        return c if c.logo_url else c.model_copy(update={"logo_url": config.FALLBACK_CLUB_LOGO})

    return record.model_copy(
        update={
            "origin": club(record.origin),
            "destination": club(record.destination),
            "player_image_url": record.player_image_url or config.FALLBACK_PLAYER_IMG,
        }
    )


def process_records(
    rows: Iterable[Mapping[str, Any]],
    options: EngineOptions | None = None,
    tuning: Tuning = DEFAULT_TUNING,
) -> list[Record]:
    """Turn raw batch rows into scored, featured, display-ready records.

    Pure: *rows* are not modified and every returned ``Record`` is new.
    """
    options = options or EngineOptions()

    # ── 1. Normalise + drop degenerate rows ───────────────────────────
    records: list[Record] = []
    total = dropped_identity = dropped_mega = 0
    for row in rows:
        total += 1
        if not isinstance(row, Mapping):
            logger.warning("Skipping non-object row #%d (%s)", total, type(row).__name__)
            continue
        if raw_post_count(row) > MEGACLUSTER_POST_CAP:
            dropped_mega += 1
            continue
        record = record_from_raw(row, tuning)
        if not has_identity(record):
            dropped_identity += 1
            continue
        records.append(record)
    logger.info(
        "Normalised %d rows → %d records (dropped %d without identity, %d over %d posts)",
        total, len(records), dropped_identity, dropped_mega, MEGACLUSTER_POST_CAP,
    )

    # ── 2. Hotness: all-time, then trailing window ────────────────────
    overall = hotness_scores([record_raw_score(r.posts) for r in records])
    recent = recent_hotness(recent_raw_scores(records, options.now), overall)

    # ── 3. Featured post, display destination, asset fallbacks ────────
    index = ClubIndex.from_records(records)
    out: list[Record] = []
    for record, hot, hot_recent in zip(records, overall, recent, strict=True):
        scored = record.model_copy(update={"hotness_overall": hot, "hotness_recent": hot_recent})
        out.append(_with_asset_fallbacks(_with_featured(scored, index, options, tuning)))

    featured = sum(1 for r in out if r.selected_post is not None)
    logger.info("Featured posts chosen for %d/%d records", featured, len(out))
    return out


def run_pipeline(
    *,
    source: str | None = None,
    featured: bool | None = None,
    options: EngineOptions | None = None,
    tuning_path: Path | None = None,
    search: str | None = None,
    status: str | None = None,
    sort: str = "hotness",
    recent: bool = False,
    limit: int | None = None,
    fmt: str = "md",
    output_dir: Path | None = None,
    to_stdout: bool = False,
    verbose: bool = False,
) -> Path | None:
    """Execute the full board build; returns the written file (``None`` for stdout)."""
    _setup_logging(verbose)
    src = source or config.default_source(featured)
    logger.info("=== rumorboard pipeline start [source=%s] ===", src)

    # ── 0. Tuning + options ───────────────────────────────────────────
    tuning = load_tuning(tuning_path or config.TUNING_PATH)
    options = options or config.engine_options()

    # ── 1. Load (raises FeedLoadError) ────────────────────────────────
    with FeedClient(timeout=config.HTTP_TIMEOUT) as client:
        rows = load_records(src, client=client)

    # ── 2. Process ────────────────────────────────────────────────────
    records = process_records(rows, options, tuning)

    # ── 3. Query ──────────────────────────────────────────────────────
    selected = apply_query(records, text=search, status=status, by=sort, recent=recent)
    if limit is not None:
        selected = selected[:limit]
    logger.info("%d records match the query", len(selected))

    # ── 4. Render ─────────────────────────────────────────────────────
    if to_stdout:
        sys.stdout.write(render(selected, fmt=fmt, recent=recent, now=options.now))
        sys.stdout.write("\n")
        return None

    out_path = write_board(
        selected,
        output_dir=output_dir or config.OUTPUT_DIR,
        fmt=fmt,
        recent=recent,
        now=options.now,
    )
    logger.info("=== rumorboard pipeline done: %s ===", out_path)
    return out_path
