"""Engagement scoring for individual posts."""

from __future__ import annotations

import math
from collections.abc import Iterable

from rumorboard.models import Post, PostMetrics

# ── Log-damped weights (hotness) ───────────────────────────────────────────
_W_LIKE = 1.0
_W_RT = 2.0
_W_REPLY = 1.5
_W_QUOTE = 1.8
_W_BOOKMARK = 0.5
_W_VIEW = 0.01

# ── Linear weights (featured-post ranking) ─────────────────────────────────
_LIN_LIKE = 1.0
_LIN_RT = 2.0
_LIN_QUOTE = 3.0
_LIN_REPLY = 1.0
_LIN_BOOKMARK = 0.2
_LIN_VIEW = 0.01


def engagement_score(metrics: PostMetrics) -> float:
    """Damped engagement magnitude: ``Σ w·ln(1 + count)``.

    The log keeps a single viral view count or retweet storm from dominating
    the population statistics.
    """
    return (
        _W_LIKE * math.log1p(metrics.likes)
        + _W_RT * math.log1p(metrics.retweets)
        + _W_REPLY * math.log1p(metrics.replies)
        + _W_QUOTE * math.log1p(metrics.quotes)
        + _W_BOOKMARK * math.log1p(metrics.bookmarks)
        + _W_VIEW * math.log1p(metrics.views)
    )


def weighted_engagement(metrics: PostMetrics) -> float:
    """Undamped weighted interaction count used by the featured-post scorer."""
    return (
        metrics.likes * _LIN_LIKE
        + metrics.retweets * _LIN_RT
        + metrics.quotes * _LIN_QUOTE
        + metrics.replies * _LIN_REPLY
        + metrics.bookmarks * _LIN_BOOKMARK
        + metrics.views * _LIN_VIEW
    )


def record_raw_score(posts: Iterable[Post]) -> float:
    """Best engagement score among *posts*, 0 when there are none."""
    return max((engagement_score(p.metrics) for p in posts), default=0.0)
