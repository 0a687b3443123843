"""Search, status filter and sort over processed records."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from rumorboard.models import Record, StatusTier

SORT_KEYS = ("hotness", "certainty", "date", "status", "name")
_ASCENDING = {"status", "name"}
_UNRANKED = len(StatusTier)


def _haystack(record: Record) -> str:
    parts = [
        record.player_name, record.player_key,
        record.origin.name, record.origin.key,
        record.destination.name, record.destination.key,
    ]
    return " ".join(str(p) for p in parts if p).lower()


def search(records: Sequence[Record], text: str | None) -> list[Record]:
    """Case-insensitive substring match on player and club fields."""
    q = (text or "").strip().lower()
    if not q:
        return list(records)
    return [r for r in records if q in _haystack(r)]


def filter_status(records: Sequence[Record], status: str | StatusTier | None) -> list[Record]:
    if not status:
        return list(records)
    wanted = StatusTier.parse(status)
    if wanted is None:
        return []
    return [r for r in records if r.status is wanted]


def sort_records(records: Sequence[Record], by: str = "hotness", recent: bool = False) -> list[Record]:
    """Sort descending by hotness/certainty/date; status (strongest first) and name ascend."""
    keys: dict[str, Callable[[Record], Any]] = {
        "hotness": (lambda r: r.hotness_recent) if recent else (lambda r: r.hotness_overall),
        "certainty": lambda r: r.display_certainty,
        "date": lambda r: r.newest_post_at.timestamp() if r.newest_post_at else 0.0,
        "status": lambda r: r.status.rank if r.status else _UNRANKED,
        "name": lambda r: r.display_name.lower(),
    }
    if by not in keys:
        raise ValueError(f"Unknown sort key {by!r}; expected one of {', '.join(SORT_KEYS)}")
    return sorted(records, key=keys[by], reverse=by not in _ASCENDING)


def apply_query(
    records: Sequence[Record],
    *,
    text: str | None = None,
    status: str | StatusTier | None = None,
    by: str = "hotness",
    recent: bool = False,
) -> list[Record]:
    return sort_records(filter_status(search(records, text), status), by=by, recent=recent)
