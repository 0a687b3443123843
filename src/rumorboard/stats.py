"""Population statistics and the hotness transform.

Hotness is a left-censored affine map of the population z-score:
``clamp(25 + 25·z, 0, 100)``. The population is centred at 25 rather than 50
so only records well above average get near the ceiling.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from datetime import datetime, timedelta

from rumorboard.engagement import record_raw_score
from rumorboard.models import Record

logger = logging.getLogger(__name__)

HOTNESS_CENTER = 25.0
HOTNESS_SCALE = 25.0
RECENT_WINDOW = timedelta(days=7)
MIN_RECENT_POPULATION = 5


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def sample_std(values: Sequence[float], m: float) -> float:
    """Sample standard deviation (n - 1); 0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    var = sum((x - m) ** 2 for x in values) / (len(values) - 1)
    return math.sqrt(var)


def z_to_hotness(z: float) -> float:
    return max(0.0, min(100.0, HOTNESS_CENTER + HOTNESS_SCALE * z))


def hotness_scores(raw: Sequence[float]) -> list[float]:
    """Map each raw score to hotness relative to the whole population."""
    m = mean(raw)
    s = sample_std(raw, m) or 1.0
    return [z_to_hotness((r - m) / s) for r in raw]


def recent_raw_scores(
    records: Sequence[Record],
    now: datetime,
    window: timedelta = RECENT_WINDOW,
) -> list[float | None]:
    """Per record, best engagement among posts inside the trailing window.

    ``None`` marks a record with no dated post in the window.
    """
    cutoff = now - window
    scores: list[float | None] = []
    for record in records:
        recent = [p for p in record.posts if p.created_at is not None and p.created_at >= cutoff]
        scores.append(record_raw_score(recent) if recent else None)
    return scores


def recent_hotness(
    raw_recent: Sequence[float | None],
    overall: Sequence[float],
    min_population: int = MIN_RECENT_POPULATION,
) -> list[float]:
    """Hotness over the recent window, or *overall* when the sample is too thin."""
    observed = [r for r in raw_recent if r is not None]
    if len(observed) < min_population:
        logger.info(
            "Only %d records with recent posts (< %d); recent hotness falls back to overall",
            len(observed),
            min_population,
        )
        return list(overall)

    m = mean(observed)
    s = sample_std(observed, m) or 1.0
    return [0.0 if r is None else z_to_hotness((r - m) / s) for r in raw_recent]
