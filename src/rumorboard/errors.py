"""Exception hierarchy for rumorboard."""

from __future__ import annotations


class RumorboardError(Exception):
    """Base class for every error raised by rumorboard."""


class FeedLoadError(RumorboardError):
    """Raised when the rumor batch cannot be fetched or parsed."""


class TuningError(RumorboardError):
    """Raised when a tuning file is unreadable or fails validation."""
