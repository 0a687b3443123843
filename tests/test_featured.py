"""Unit tests for featured-post selection."""

from datetime import UTC, datetime, timedelta

import pytest

from rumorboard.featured import (
    composite_score,
    destination_matches,
    destination_nudge,
    eligible_pool,
    mention_nudge,
    pick_featured_post,
)
from rumorboard.models import Club, EngineOptions, Post, PostMetrics, Record, StatusTier

NOW = datetime(2024, 8, 1, 12, 0, tzinfo=UTC)
OPTS = EngineOptions(now=NOW)


def _make(
    post_id: str,
    text: str = "",
    likes: int = 0,
    rts: int = 0,
    age_days: float | None = 1.0,
    **fields: object,
) -> Post:
    return Post(
        post_id=post_id,
        text=text,
        created_at=None if age_days is None else NOW - timedelta(days=age_days),
        metrics=PostMetrics(likes=likes, retweets=rts),
        **fields,
    )


def _record(*posts: Post, status: StatusTier | None = StatusTier.LINKED, **fields: object) -> Record:
    defaults: dict[str, object] = {
        "player_name": "Declan Rice",
        "player_key": "declan rice",
        "origin": Club(name="West Ham", key="west ham united"),
        "destination": Club(name="Arsenal", key="arsenal"),
    }
    defaults.update(fields)
    return Record(status=status, posts=list(posts), **defaults)


class TestCompositeScore:
    def test_denial_penalty_applied_when_not_allowed(self) -> None:
        post = _make("1", "Deal is off, he is not joining")
        record = _record(post)
        penalised = composite_score(post, record, allow_denial=False, now=NOW)
        allowed = composite_score(post, record, allow_denial=True, now=NOW)
        assert penalised == pytest.approx(0.6 * allowed)

    def test_no_penalty_for_normal_posts(self) -> None:
        post = _make("1", "Arsenal interested")
        record = _record(post)
        assert composite_score(post, record, False, NOW) == composite_score(post, record, True, NOW)

    def test_recency_decay(self) -> None:
        fresh = _make("1", "Arsenal interested", age_days=0)
        old = _make("2", "Arsenal interested", age_days=21)
        record = _record(fresh, old)
        ratio = composite_score(old, record, False, NOW) / composite_score(fresh, record, False, NOW)
        assert ratio == pytest.approx(0.36787944, rel=1e-6)

    def test_credible_author_scores_higher(self) -> None:
        record = _record()
        known = _make("1", "Arsenal interested", author_handle="@FabrizioRomano")
        unknown = _make("2", "Arsenal interested", author_handle="@someone")
        assert composite_score(known, record, False, NOW) > composite_score(unknown, record, False, NOW)


class TestDestinationAlignment:
    def test_nudges(self) -> None:
        record = _record()
        assert destination_nudge(_make("1", destination_club="Arsenal FC"), record) == pytest.approx(0.12)
        assert destination_nudge(_make("1", destination_club="Chelsea"), record) == pytest.approx(-0.08)
        assert destination_nudge(_make("1"), record) == 0.0

    def test_partial_containment(self) -> None:
        record = _record(destination=Club(name="Manchester United", key="manchester united"))
        assert destination_nudge(_make("1", destination_club="Manchester"), record) == pytest.approx(0.07)
        assert destination_matches(_make("1", destination_club="Manchester"), record)

    def test_unknown_side_matches(self) -> None:
        record = _record(destination=Club())
        assert destination_matches(_make("1", destination_club="Chelsea"), record)

    def test_mention_ignores_accents(self) -> None:
        post = _make("1", text="Atlético Madrid agree fee", destination_club="Atletico Madrid")
        assert mention_nudge(post) == pytest.approx(0.05)
        post = _make("1", text="Atletico Madrid agree fee", destination_club="Atlético Madrid")
        assert mention_nudge(post) == pytest.approx(0.05)
        assert mention_nudge(_make("1", text="Fee agreed", destination_club="Atlético Madrid")) == 0.0


class TestPickFeaturedPost:
    def test_empty_record(self) -> None:
        assert pick_featured_post(_record(), OPTS) is None

    def test_here_we_go_beats_engagement(self) -> None:
        hgw = _make("1", "Here we go! Declan Rice to Arsenal", age_days=5)
        viral = _make("2", "Arsenal interested in Declan Rice", likes=2_000_000, rts=500_000, age_days=0)
        assert pick_featured_post(_record(viral, hgw), OPTS).post_id == "1"

    def test_definitive_band_prefers_newest(self) -> None:
        older = _make("1", "Here we go!", age_days=3)
        newer = _make("2", "Official: Rice joins Arsenal", age_days=1)
        assert pick_featured_post(_record(older, newer), OPTS).post_id == "2"

    def test_definitive_denial_is_ignored(self) -> None:
        denial = _make("1", "Here we go... no, deal off", is_denial=True)
        normal = _make("2", "Arsenal in talks")
        assert pick_featured_post(_record(denial, normal), OPTS).post_id == "2"

    def test_denial_excluded_when_alternative_exists(self) -> None:
        denial = _make("1", "Deal is off, he is not joining", likes=900_000)
        normal = _make("2", "Arsenal monitoring the situation", likes=3)
        assert pick_featured_post(_record(denial, normal), OPTS).post_id == "2"

    def test_denial_used_when_nothing_else(self) -> None:
        denial = _make("1", "Deal is off, he is not joining")
        assert pick_featured_post(_record(denial), OPTS).post_id == "1"

    def test_destination_filter_and_relaxation(self) -> None:
        wrong_club = _make("1", "Advanced talks ongoing", destination_club="Chelsea")
        right_club = _make("2", "Arsenal interested", destination_club="Arsenal")
        record = _record(wrong_club, right_club)
        assert pick_featured_post(record, OPTS).post_id == "2"
        relaxed = EngineOptions(now=NOW, relax_destination=True)
        assert pick_featured_post(record, relaxed).post_id == "1"

    def test_single_subject_preferred(self) -> None:
        roundup = _make("1", "Advanced talks for three players", player_count=3)
        single = _make("2", "Arsenal interested")
        assert pick_featured_post(_record(roundup, single), OPTS).post_id == "2"

    def test_other_subject_only_as_last_resort(self) -> None:
        other = _make("1", "Advanced talks", player_name="Mason Mount")
        own = _make("2", "Arsenal interested", player_name="Declan Rice")
        assert pick_featured_post(_record(other, own), OPTS).post_id == "2"
        assert pick_featured_post(_record(other), OPTS).post_id == "1"

    def test_preset_kept_unless_rescore(self) -> None:
        weak = _make("1", "Arsenal interested")
        strong = _make("2", "Advanced talks ongoing")
        record = _record(weak, strong, featured_post_id="1")
        assert pick_featured_post(record, OPTS).post_id == "1"
        rescore = EngineOptions(now=NOW, force_rescore=True)
        assert pick_featured_post(record, rescore).post_id == "2"

    def test_preset_must_respect_denial_policy(self) -> None:
        denial = _make("1", "He has ruled out the move")
        normal = _make("2", "Arsenal interested")
        linked = _record(denial, normal, featured_post_id="1")
        assert pick_featured_post(linked, OPTS).post_id == "2"
        no_shot = _record(denial, normal, status=StatusTier.NO_SHOT, featured_post_id="1")
        assert pick_featured_post(no_shot, OPTS).post_id == "1"

    def test_unknown_preset_falls_through(self) -> None:
        post = _make("1", "Arsenal interested")
        assert pick_featured_post(_record(post, featured_post_id="999"), OPTS).post_id == "1"

    def test_ties_broken_by_identifier(self) -> None:
        a = _make("1", "Arsenal interested", age_days=None)
        b = _make("2", "Arsenal interested", age_days=None)
        assert pick_featured_post(_record(a, b), OPTS).post_id == "2"
        assert pick_featured_post(_record(b, a), OPTS).post_id == "2"

    def test_engagement_lifts_equal_copy(self) -> None:
        a = _make("1", "Arsenal interested", likes=10, age_days=None)
        b = _make("2", "Arsenal interested", likes=10, age_days=None)
        c = _make("3", "Arsenal interested", likes=11, age_days=None)
        assert pick_featured_post(_record(a, b, c), OPTS).post_id == "3"

    def test_deterministic(self) -> None:
        posts = [
            _make(str(i), "Arsenal in talks" if i % 2 else "Arsenal interested", likes=i * 7 % 13, age_days=i % 4)
            for i in range(1, 12)
        ]
        record = _record(*posts)
        picks = {pick_featured_post(record, OPTS).post_id for _ in range(5)}
        assert len(picks) == 1


class TestEligiblePool:
    def test_strict_tier_first(self) -> None:
        record = _record()
        good = _make("1", destination_club="Arsenal")
        bad = _make("2", destination_club="Chelsea")
        pool = eligible_pool([good, bad], record, OPTS, allow_denial=False)
        assert [p.post_id for p in pool] == ["1"]

    def test_last_tier_accepts_everything(self) -> None:
        record = _record()
        denial = _make("1", "ruled out", destination_club="Chelsea", player_name="Someone Else")
        pool = eligible_pool([denial], record, OPTS, allow_denial=False)
        assert [p.post_id for p in pool] == ["1"]
