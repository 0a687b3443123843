"""Raw batch rows → immutable ``Post`` / ``Record`` values.

Rows come from a hand-maintained JSON export, so every field may be missing,
null, or the wrong type. Nothing here raises on bad data; values coerce to
0, ``None`` or a tier-based fallback instead.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from rumorboard.classify import subject_key
from rumorboard.clubs import club_key
from rumorboard.models import Club, Post, PostMetrics, Record, StatusTier
from rumorboard.tuning import DEFAULT_TUNING, Tuning

logger = logging.getLogger(__name__)

TWITTER_EPOCH_MS = 1288834974657  # 2010-11-04, snowflake time origin

_HANDLE_URL_RE = re.compile(r"^https?://(?:www\.)?(?:twitter|x)\.com/", re.IGNORECASE)

# Field aliases seen across export revisions, first non-empty wins.
_COUNTER_FIELDS: dict[str, tuple[str, ...]] = {
    "likes": ("likes", "like_count", "favorite_count"),
    "retweets": ("retweets", "retweet_count"),
    "replies": ("replies", "reply_count"),
    "quotes": ("quotes", "quote_count"),
    "bookmarks": ("bookmarks", "bookmark_count"),
    "views": ("views", "view_count", "impressions", "impression_count"),
}
_HANDLE_FIELDS = ("source_handle", "author", "screen_name", "user_handle")
_POST_DEST_FIELDS = ("destination_club", "dest_club", "normalized_destination_club")
_POST_PLAYER_FIELDS = ("player_name", "normalized_player_name", "player")
_RECORD_PLAYER_FIELDS = ("player_name_display", "player_name", "normalized_player_name", "player")


def _first(raw: Mapping[str, Any], fields: tuple[str, ...]) -> Any:
    for name in fields:
        value = raw.get(name)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _flag(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


def safe_number(value: Any) -> float | None:
    """Finite float from numbers or numeric strings, else ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def safe_count(value: Any) -> int:
    """Non-negative integer counter; anything unusable becomes 0."""
    num = safe_number(value)
    if num is None or num < 0:
        return 0
    return int(num)


def normalize_handle(raw: Any) -> str:
    """``https://twitter.com/Foo`` / ``Foo`` / ``@Foo`` → ``@Foo``."""
    handle = _text(raw)
    if not handle:
        return ""
    handle = _HANDLE_URL_RE.sub("", handle).strip("/")
    if not handle:
        return ""
    return handle if handle.startswith("@") else f"@{handle}"


def normalize_asset(path: Any) -> str | None:
    """Forward-slash asset path, ``None`` when blank."""
    if not isinstance(path, str) or not path.strip():
        return None
    return path.strip().replace("\\", "/")


def snowflake_to_datetime(post_id: Any) -> datetime | None:
    """Decode the millisecond timestamp embedded in an X/Twitter status id."""
    try:
        snowflake = int(str(post_id).strip())
    except (TypeError, ValueError):
        return None
    if snowflake <= 0:
        return None
    ms = (snowflake >> 22) + TWITTER_EPOCH_MS
    try:
        return datetime.fromtimestamp(ms / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 string, datetime or epoch seconds → aware UTC datetime."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    s = str(value).strip()
    if not s:
        return None
    try:
        parsed = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def post_timestamp(raw: Mapping[str, Any]) -> datetime | None:
    """Explicit ``created_at`` first, then the id's embedded time."""
    return parse_timestamp(raw.get("created_at")) or snowflake_to_datetime(raw.get("tweet_id"))


def post_from_raw(raw: Mapping[str, Any]) -> Post | None:
    """Build a ``Post``; rows without an identifier are dropped (``None``)."""
    post_id = _text(raw.get("tweet_id") or raw.get("post_id") or raw.get("id"))
    if post_id is None:
        return None

    counters = {field: safe_count(_first(raw, names)) for field, names in _COUNTER_FIELDS.items()}
    player_count = safe_number(raw.get("player_count"))

    return Post(
        post_id=post_id,
        text=str(raw.get("tweet_text") or raw.get("text") or ""),
        author_handle=normalize_handle(_first(raw, _HANDLE_FIELDS)),
        created_at=post_timestamp({**raw, "tweet_id": post_id}),
        metrics=PostMetrics(**counters),
        destination_club=_text(_first(raw, _POST_DEST_FIELDS)),
        destination_logo_url=normalize_asset(raw.get("destination_logo_url")),
        player_name=_text(_first(raw, _POST_PLAYER_FIELDS)),
        is_denial=_flag(raw.get("is_denial")),
        player_count=int(player_count) if player_count is not None else None,
        multi_player=_flag(raw.get("multi_player")),
        single_player=_flag(raw.get("single_player")),
        url=_text(raw.get("tweet_url") or raw.get("url")),
    )


def explicit_certainty(value: Any) -> float | None:
    """Accept 0–1 fractions and 0–100 percentages; anything else is ``None``."""
    num = safe_number(value)
    if num is None:
        return None
    if 1 < num <= 100:
        num /= 100
    if 0 <= num <= 1:
        return num
    return None


def normalize_certainty(value: Any, status: StatusTier | None, tuning: Tuning = DEFAULT_TUNING) -> float:
    """Display certainty in [0, 1].

    Confirmed deals are pinned to 1.0; otherwise a valid explicit value wins
    and the status tier's weight is the fallback.
    """
    if status is StatusTier.CONFIRMED:
        return 1.0
    explicit = explicit_certainty(value)
    if explicit is not None:
        return explicit
    return tuning.status_weight(status)


def _club(raw: Mapping[str, Any], prefix: str) -> Club:
    name = _text(raw.get(f"{prefix}_club")) or _text(raw.get(f"normalized_{prefix}_club"))
    return Club(
        name=name,
        key=club_key(name),
        logo_url=normalize_asset(raw.get(f"{prefix}_logo_url")),
    )


def record_from_raw(raw: Mapping[str, Any], tuning: Tuning = DEFAULT_TUNING) -> Record:
    """Normalise one batch row into a ``Record`` (derived scores left at defaults)."""
    raw_posts = raw.get("tweets")
    posts: list[Post] = []
    if isinstance(raw_posts, list):
        for item in raw_posts:
            if not isinstance(item, Mapping):
                continue
            post = post_from_raw(item)
            if post is not None:
                posts.append(post)

    status = StatusTier.parse(raw.get("status_bin") or raw.get("status"))
    player_name = _text(_first(raw, _RECORD_PLAYER_FIELDS))
    player_key = subject_key(_first(raw, ("normalized_player_name",)) or player_name)

    return Record(
        player_name=player_name,
        player_key=player_key,
        origin=_club(raw, "origin"),
        destination=_club(raw, "destination"),
        status=status,
        certainty_score=explicit_certainty(raw.get("certainty_score")),
        posts=posts,
        featured_post_id=_text(raw.get("featured_tweet_id") or raw.get("featured_post_id")),
        last_seen_at=parse_timestamp(raw.get("last_seen_at")),
        player_image_url=normalize_asset(raw.get("player_image_url")),
        display_certainty=normalize_certainty(raw.get("certainty_score"), status, tuning),
    )


def raw_post_count(raw: Mapping[str, Any]) -> int:
    posts = raw.get("tweets")
    return len(posts) if isinstance(posts, list) else 0


