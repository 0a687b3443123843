"""Domain models used across the pipeline."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StatusTier(str, Enum):
    """Deal-certainty taxonomy, strongest first."""

    CONFIRMED = "Confirmed"
    IMMINENT = "Imminent"
    ADVANCED = "Advanced"
    LINKED = "Linked"
    SPECULATIVE = "Speculative"
    GHOSTED = "Ghosted"
    NO_SHOT = "No Shot"

    @property
    def rank(self) -> int:
        return list(StatusTier).index(self)

    @classmethod
    def parse(cls, value: object) -> StatusTier | None:
        """Lenient lookup: ``"no-shot"``, ``"NO_SHOT"`` and ``"No Shot"`` all match."""
        if isinstance(value, StatusTier):
            return value
        if value is None:
            return None
        wanted = " ".join(str(value).replace("-", " ").replace("_", " ").split()).lower()
        for tier in cls:
            if tier.value.lower() == wanted:
                return tier
        return None


class PostMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    likes: int = 0
    retweets: int = 0
    replies: int = 0
    quotes: int = 0
    bookmarks: int = 0
    views: int = 0


class Post(BaseModel):
    model_config = ConfigDict(frozen=True)

    post_id: str
    text: str = ""
    author_handle: str = ""
    created_at: datetime | None = None
    metrics: PostMetrics = Field(default_factory=PostMetrics)
    destination_club: str | None = None
    destination_logo_url: str | None = None
    player_name: str | None = None
    is_denial: bool | None = None
    player_count: int | None = None
    multi_player: bool | None = None
    single_player: bool | None = None
    url: str | None = None

    @property
    def link(self) -> str:
        if self.url and self.url.startswith(("https://", "http://")):
            return self.url
        return f"https://twitter.com/i/web/status/{self.post_id}"


class Club(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    key: str = ""  # canonical key, "" when unknown
    logo_url: str | None = None


class Record(BaseModel):
    """A rumor cluster: one subject moving between two clubs, plus its posts."""

    model_config = ConfigDict(frozen=True)

    player_name: str | None = None
    player_key: str = ""
    origin: Club = Field(default_factory=Club)
    destination: Club = Field(default_factory=Club)
    status: StatusTier | None = None
    certainty_score: float | None = None
    posts: list[Post] = Field(default_factory=list)
    featured_post_id: str | None = None
    last_seen_at: datetime | None = None
    player_image_url: str | None = None

    # ── derived by the pipeline ───────────────────────────────────────
    hotness_overall: float = 0.0
    hotness_recent: float = 0.0
    display_certainty: float = 0.0
    selected_post: Post | None = None
    display_destination: str | None = None
    display_destination_logo_url: str | None = None

    @property
    def display_name(self) -> str:
        return self.player_name or self.player_key or ""

    @property
    def newest_post_at(self) -> datetime | None:
        """Newest post timestamp, falling back to ``last_seen_at``."""
        stamps = [p.created_at for p in self.posts if p.created_at is not None]
        if stamps:
            return max(stamps)
        return self.last_seen_at


class EngineOptions(BaseModel):
    """Caller-supplied switches for a single pipeline run."""

    model_config = ConfigDict(frozen=True)

    force_rescore: bool = False
    relax_destination: bool = False
    now: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("now")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return value if value.tzinfo else value.replace(tzinfo=UTC)
