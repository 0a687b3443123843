"""Text signals extracted from post copy: denials, definitiveness, subject count."""

from __future__ import annotations

import re

from rumorboard.models import Post, Record

# ── Denial lexicon ─────────────────────────────────────────────────────────
_DENIAL_PHRASES: tuple[str, ...] = (
    "deal off", "deal is off", "not joining", "no longer in talks",
    "no agreement", "not happening", "denies", "denied", "rejects",
    "ruled out", "won't join", "won’t join", "will not join",
)

# ── Tiered (pattern, ceiling) rules ────────────────────────────────────────
# Each rule can lift the score to its ceiling; the result is the max matched.
_Rule = tuple[re.Pattern[str], float]

# Tier 1: done deals. Shared with the definitive short-circuit.
_DEFINITIVE_RULES: list[_Rule] = [
    (re.compile(r"\bhere\s*we\s*go\b"), 1.00),
    (re.compile(r"\bofficial(?:ly)?\b"), 0.98),
    (re.compile(r"\b(?:full|total)\s+agreement\b|\bagreement (?:reached|in place)\b"), 0.96),
    (re.compile(r"\bpaperwork\b.*(?:signed|completed)|\bsigning\b|\bsigned\b"), 0.95),
    (re.compile(r"\bmedical\b.*(?:completed|done|passed)|\bshirt number\b|\bunveiled\b"), 0.94),
]

_EMOJI_RE = re.compile("[🔐✅🤝📝✍]")

_CONFIDENCE_RULES: list[_Rule] = [
    *_DEFINITIVE_RULES,
    (_EMOJI_RE, 0.92),
    # Tier 2: near-definitive
    (re.compile(r"\bimminent\b|\bset to join\b|\bvery close\b|\bclose to\b"), 0.90),
    (re.compile(r"\badvanced (?:talks|negotiations)\b|\bverbal agreement\b"), 0.88),
    (re.compile(r"\bfee\b.*(?:agreed|agreement)|\bdeal\b.*(?:agreed|in place)"), 0.86),
    # Tier 3: concrete moves
    (re.compile(r"\bbid (?:submitted|sent|made)\b|\boffer (?:made|sent|submitted)\b"), 0.78),
    (re.compile(r"\bproposal\b|\bin (?:talks|negotiations)\b|\bcontacts\b"), 0.72),
    # Tier 4: interest only
    (re.compile(r"\binterest(?:ed)?\b|\bmonitor(?:ing|ed)\b|\blinked\b|\btarget\b"), 0.55),
]

_CONFIDENCE_FLOOR = 0.30
_CONFIDENCE_DENIAL_CAP = 0.15
_DEFINITIVE_EMOJI = 0.93
_DEFINITIVE_TOP_SOURCE = 0.92
_TOP_SOURCE_CREDIBILITY = 0.95
_DEFINITIVE_DENIAL_CAP = 0.10


def subject_key(name: str | None) -> str:
    """Lowercased, whitespace-collapsed subject name ("" when missing)."""
    if not name:
        return ""
    return " ".join(str(name).lower().split())


def _best_ceiling(text: str, rules: list[_Rule], floor: float) -> float:
    score = floor
    for pattern, ceiling in rules:
        if ceiling > score and pattern.search(text):
            score = ceiling
    return score


def is_denial(post: Post) -> bool:
    """Explicit ``is_denial`` flag wins; otherwise look for negation phrases."""
    if post.is_denial is not None:
        return post.is_denial
    text = post.text.lower()
    return any(phrase in text for phrase in _DENIAL_PHRASES)


def text_confidence(post: Post) -> float:
    """Definitiveness of the post's language, 0.30 (nothing) to 1.0 ("here we go")."""
    score = _best_ceiling(post.text.lower(), _CONFIDENCE_RULES, _CONFIDENCE_FLOOR)
    if is_denial(post):
        score = min(score, _CONFIDENCE_DENIAL_CAP)
    return score


def definitive_score(post: Post, credibility: float) -> float:
    """Score that only fires for done-deal language or top-tier sources.

    Posts reaching the definitive threshold bypass the composite ranking.
    """
    text = post.text.lower()
    score = _best_ceiling(text, _DEFINITIVE_RULES, 0.0)
    if _EMOJI_RE.search(text):
        score = max(score, _DEFINITIVE_EMOJI)
    if credibility >= _TOP_SOURCE_CREDIBILITY:
        score = max(score, _DEFINITIVE_TOP_SOURCE)
    if is_denial(post):
        score = min(score, _DEFINITIVE_DENIAL_CAP)
    return score


def is_single_subject(post: Post) -> bool:
    """True unless the post is flagged as naming several players."""
    if post.player_count is not None:
        return post.player_count == 1
    if post.multi_player is not None:
        return not post.multi_player
    if post.single_player is not None:
        return post.single_player
    return True


def same_subject(post: Post, record: Record) -> bool:
    """A post is attributed to the record's player unless it names another one."""
    if not record.player_key:
        return True
    post_key = subject_key(post.player_name)
    return post_key == record.player_key if post_key else True
