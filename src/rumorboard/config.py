"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path

from dotenv import load_dotenv

from rumorboard.models import EngineOptions
from rumorboard.normalize import parse_timestamp

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]
DATA_DIR: Path = PROJECT_ROOT / "data"

# ── Batch source ───────────────────────────────────────────────────────────
FEED_FILENAME = "final_rumors_clean.json"
FEATURED_FEED_FILENAME = "final_rumors_clean.featured.json"
HTTP_TIMEOUT: float = float(os.getenv("RUMORBOARD_HTTP_TIMEOUT", "30"))

# ── Engine switches ────────────────────────────────────────────────────────
TUNING_PATH: Path = Path(
    os.getenv("RUMORBOARD_TUNING", str(PROJECT_ROOT / "config" / "tuning.yml"))
)
OUTPUT_DIR: Path = Path(os.getenv("RUMORBOARD_OUTPUT_DIR", str(PROJECT_ROOT / "out")))

# ── Assets ─────────────────────────────────────────────────────────────────
FALLBACK_PLAYER_IMG = "assets/ui/defaults/player_silhouette.png"
FALLBACK_CLUB_LOGO = "assets/ui/defaults/club_placeholder.png"


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def default_source(featured: bool | None = None) -> str:
    """Resolve the batch location: ``RUMORBOARD_SOURCE`` or the bundled data file.

    With *featured* (or ``RUMORBOARD_FEATURED``) the pre-stamped variant is used.
    """
    explicit = os.getenv("RUMORBOARD_SOURCE")
    if explicit:
        return explicit
    if featured is None:
        featured = env_flag("RUMORBOARD_FEATURED")
    return str(DATA_DIR / (FEATURED_FEED_FILENAME if featured else FEED_FILENAME))


def engine_options(
    *,
    force_rescore: bool | None = None,
    relax_destination: bool | None = None,
    now: str | datetime | None = None,
) -> EngineOptions:
    """Build ``EngineOptions``; explicit arguments beat environment values."""
    if force_rescore is None:
        force_rescore = env_flag("RUMORBOARD_FORCE_RESCORE")
    if relax_destination is None:
        relax_destination = env_flag("RUMORBOARD_RELAX_DESTINATION")
    if now is None:
        now = os.getenv("RUMORBOARD_NOW") or None

    resolved = parse_timestamp(now) if now is not None else None
    if now is not None and resolved is None:
        raise ValueError(f"Unparseable 'now' timestamp: {now!r}")

    return EngineOptions(
        force_rescore=force_rescore,
        relax_destination=relax_destination,
        now=resolved or datetime.now(UTC),
    )
