"""Club name canonicalisation and the per-run club index."""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Iterable

from rumorboard.models import Post, Record

logger = logging.getLogger(__name__)

# Well-known short forms → canonical key. Looked up both before and after
# suffix stripping so "Man Utd" and "Barça" resolve.
_ALIASES: dict[str, str] = {
    "barca": "barcelona",
    "psg": "paris saint-germain",
    "paris sg": "paris saint-germain",
    "paris saint germain": "paris saint-germain",
    "man city": "manchester city",
    "city": "manchester city",
    "man utd": "manchester united",
    "man united": "manchester united",
    "manchester utd": "manchester united",
    "utd": "manchester united",
    "atletico": "atletico madrid",
    "atleti": "atletico madrid",
    "atletico de madrid": "atletico madrid",
    "rm": "real madrid",
    "spurs": "tottenham hotspur",
    "tottenham": "tottenham hotspur",
    "inter": "inter milan",
    "internazionale": "inter milan",
    "bayern": "bayern munich",
    "bayern munchen": "bayern munich",
    "juve": "juventus",
    "bvb": "borussia dortmund",
    "dortmund": "borussia dortmund",
    "wolves": "wolverhampton wanderers",
    "newcastle": "newcastle united",
    "west ham": "west ham united",
}

_SUFFIX_RE = re.compile(r"\b(?:fc|cf|afc|sc|ssc|ac|bk|cfc)\b")
_PUNCT_RE = re.compile(r"[^\w\s-]")

# "Real Madrid to pay €X to Liverpool to have Trent" → destination is the payer.
_PAYER_RE = re.compile(
    r"([A-Z][A-Za-z]+(?:\s[A-Z][A-Za-z]+){0,3})\s+to pay[\s\S]+?\s+to\s+"
    r"([A-Z][A-Za-z]+(?:\s[A-Z][A-Za-z]+){0,3})\s+to have",
    re.IGNORECASE,
)
_MOVE_RE = re.compile(
    r"\b(?:to|join(?:ing)?|sign(?:ing)? for|move to|headed to)\s+"
    r"([A-Z][A-Za-z]+(?:\s[A-Z][A-Za-z]+){0,3})"
)


def fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def club_key(name: str | None) -> str:
    """Canonical comparison key for a club name ("" when missing)."""
    if not name:
        return ""
    s = " ".join(fold(str(name)).lower().split())
    if s in _ALIASES:
        return _ALIASES[s]
    s = _PUNCT_RE.sub(" ", s.replace(".", ""))
    s = _SUFFIX_RE.sub(" ", s)
    s = " ".join(s.split()).strip("- ")
    return _ALIASES.get(s, s)


def same_club(a: str | None, b: str | None) -> bool:
    ka, kb = club_key(a), club_key(b)
    return bool(ka) and ka == kb


def club_contains(a: str | None, b: str | None) -> bool:
    """Weak match: one canonical key is a substring of the other."""
    ka, kb = club_key(a), club_key(b)
    if not ka or not kb:
        return False
    return ka in kb or kb in ka


def _title_case(s: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in s.split())


class ClubIndex:
    """Known clubs seen in one batch: key → display name and logo."""

    def __init__(self) -> None:
        self._names: dict[str, str] = {}
        self._logos: dict[str, str] = {}

    # ── building ────────────────────────────────────────────────────────

    def add(self, name: str | None, logo_url: str | None = None) -> None:
        key = club_key(name)
        if not key or name is None:
            return
        # Prefer the longest spelling as the display name.
        if len(name) > len(self._names.get(key, "")):
            self._names[key] = name
        if logo_url and key not in self._logos:
            self._logos[key] = logo_url

    @classmethod
    def from_records(cls, records: Iterable[Record]) -> ClubIndex:
        index = cls()
        for record in records:
            index.add(record.origin.name, record.origin.logo_url)
            index.add(record.destination.name, record.destination.logo_url)
            for post in record.posts:
                index.add(post.destination_club, post.destination_logo_url)
        logger.debug("Club index holds %d clubs", len(index))
        return index

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and club_key(name) in self._names

    # ── lookups ─────────────────────────────────────────────────────────

    def display_name(self, name: str | None) -> str | None:
        return self._names.get(club_key(name))

    def logo_for(self, name: str | None) -> str | None:
        return self._logos.get(club_key(name))

    def infer_destination(self, post: Post, origin_key: str = "") -> str | None:
        """Guess the destination club from the post's text.

        Tries, in order: the "X to pay … to Y to have" construction, a
        "to / joining / sign for / move to / headed to <Club>" phrase, then the
        longest known club mentioned anywhere. Candidates must be clubs
        already in the index and never the origin club.
        """
        raw = post.text
        if not raw:
            return None

        candidates: list[str] = []
        m = _PAYER_RE.search(raw)
        if m:
            candidates.append(_title_case(m.group(1)))
        m = _MOVE_RE.search(raw)
        if m:
            candidates.append(_title_case(m.group(1)))
        for cand in candidates:
            key = club_key(cand)
            if key and key != origin_key and key in self._names:
                return self._names[key]

        text = fold(raw).lower()
        best = ""
        for key in self._names:
            if key == origin_key or len(key) <= len(best):
                continue
            if key in text:
                best = key
        return self._names[best] if best else None
