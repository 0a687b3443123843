"""Pick the one post that represents a rumor record.

Order of decisions:
1. a pre-selected ``featured_post_id`` (unless a rescore is forced),
2. the definitive short-circuit ("here we go", "official", ...),
3. a filter cascade that relaxes until something survives, ranked by the
   composite score.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime

from rumorboard.classify import (
    definitive_score,
    is_denial,
    is_single_subject,
    same_subject,
    text_confidence,
)
from rumorboard.clubs import club_contains, club_key, fold
from rumorboard.engagement import engagement_score, weighted_engagement
from rumorboard.models import EngineOptions, Post, Record, StatusTier
from rumorboard.tuning import DEFAULT_TUNING, Tuning

logger = logging.getLogger(__name__)

# ── Destination alignment nudges ───────────────────────────────────────────
_NUDGE_SAME_CLUB = 0.12
_NUDGE_CONTAINED = 0.07
_NUDGE_MISMATCH = -0.08
_NUDGE_MENTION = 0.05

_Predicate = Callable[[Post], bool]


def allows_denial(record: Record) -> bool:
    """Only a No Shot record may be represented by a denial."""
    return record.status is StatusTier.NO_SHOT


def _age_days(post: Post, now: datetime) -> float:
    if post.created_at is None:
        return 0.0
    return (now - post.created_at).total_seconds() / 86400


def _timestamp(post: Post) -> float:
    return post.created_at.timestamp() if post.created_at else 0.0


def destination_nudge(post: Post, record: Record) -> float:
    """Reward posts whose destination hint agrees with the record's."""
    record_key = record.destination.key
    post_key = club_key(post.destination_club)
    if not record_key or not post_key:
        return 0.0
    if record_key == post_key:
        return _NUDGE_SAME_CLUB
    if club_contains(record_key, post_key):
        return _NUDGE_CONTAINED
    return _NUDGE_MISMATCH


def mention_nudge(post: Post) -> float:
    """Small bonus when the post's own destination club appears in its text."""
    key = club_key(post.destination_club)
    return _NUDGE_MENTION if key and key in fold(post.text).lower() else 0.0


def destination_matches(post: Post, record: Record) -> bool:
    """Compatible unless both sides are known and unrelated."""
    record_key = record.destination.key
    post_key = club_key(post.destination_club)
    if not record_key or not post_key:
        return True
    return record_key == post_key or club_contains(record_key, post_key)


def composite_score(
    post: Post,
    record: Record,
    allow_denial: bool,
    now: datetime,
    tuning: Tuning = DEFAULT_TUNING,
) -> float:
    """Confidence-first ranking score of *post* as the face of *record*."""
    w = tuning.weights
    conf = text_confidence(post)
    cred = tuning.credibility_for(post.author_handle)
    tier = tuning.status_weight(record.status)
    single = 1.0 if is_single_subject(post) else 0.0
    eng = math.log10(1 + weighted_engagement(post.metrics))
    alignment = destination_nudge(post, record) + mention_nudge(post)

    recency = math.exp(-_age_days(post, now) / w.recency_days)
    penalty = w.denial_penalty if (not allow_denial and is_denial(post)) else 1.0

    base = (
        w.definitiveness * conf
        + w.credibility * cred
        + w.status * tier
        + w.single_subject * single
        + w.engagement * eng
        + w.alignment * alignment
    )
    return base * recency * penalty


def _definitive_pick(pool: list[Post], tuning: Tuning) -> Post | None:
    """Newest post among the near-maximal definitive ones, if any reach the bar."""
    scored = [(p, definitive_score(p, tuning.credibility_for(p.author_handle))) for p in pool]
    top = max((d for _, d in scored), default=0.0)
    if top < tuning.weights.definitive_threshold:
        return None
    band = [p for p, d in scored if d >= top - tuning.weights.definitive_band]
    band.sort(
        key=lambda p: (_timestamp(p), engagement_score(p.metrics), p.post_id),
        reverse=True,
    )
    return band[0]


def _cascade(record: Record, options: EngineOptions, allow_denial: bool) -> list[list[_Predicate]]:
    """Filter tiers from strictest to loosest."""

    def subject(p: Post) -> bool:
        return same_subject(p, record)

    def destination(p: Post) -> bool:
        return destination_matches(p, record)

    def denial_ok(p: Post) -> bool:
        return allow_denial or not is_denial(p)

    tiers: list[list[_Predicate]] = []
    if not options.relax_destination:
        tiers.append([subject, destination, is_single_subject, denial_ok])
    tiers += [
        [subject, is_single_subject, denial_ok],
        [subject, denial_ok],
        [denial_ok],
        [],
    ]
    return tiers


def eligible_pool(
    posts: list[Post], record: Record, options: EngineOptions, allow_denial: bool
) -> list[Post]:
    """First non-empty pool of the cascade (the last tier accepts everything)."""
    for checks in _cascade(record, options, allow_denial):
        pool = [p for p in posts if all(check(p) for check in checks)]
        if pool:
            return pool
    return []


def pick_featured_post(
    record: Record,
    options: EngineOptions | None = None,
    tuning: Tuning = DEFAULT_TUNING,
) -> Post | None:
    """Deterministically choose the representative post of *record*.

    Returns ``None`` only when the record has no post with an identifier.
    """
    options = options or EngineOptions()
    posts = [p for p in record.posts if p.post_id]
    if not posts:
        return None

    allow_denial = allows_denial(record)

    def policy_ok(p: Post) -> bool:
        return same_subject(p, record) and (allow_denial or not is_denial(p))

    # 1. Pre-selected post
    if record.featured_post_id and not options.force_rescore:
        preset = next((p for p in posts if p.post_id == record.featured_post_id), None)
        if preset is not None and policy_ok(preset):
            logger.debug("Keeping pre-selected post %s for %s", preset.post_id, record.display_name)
            return preset

    # 2. Definitive short-circuit
    definitive = _definitive_pick([p for p in posts if policy_ok(p)], tuning)
    if definitive is not None:
        logger.debug("Definitive post %s wins for %s", definitive.post_id, record.display_name)
        return definitive

    # 3. Cascade + composite ranking
    pool = eligible_pool(posts, record, options, allow_denial)
    ranked = sorted(
        pool,
        key=lambda p: (
            composite_score(p, record, allow_denial, options.now, tuning),
            _timestamp(p),
            engagement_score(p.metrics),
            p.post_id,
        ),
        reverse=True,
    )
    return ranked[0] if ranked else None
