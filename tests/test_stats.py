"""Unit tests for population statistics and hotness."""

import math
from datetime import UTC, datetime, timedelta

import pytest

from rumorboard.models import Post, PostMetrics, Record
from rumorboard.stats import (
    hotness_scores,
    mean,
    recent_hotness,
    recent_raw_scores,
    sample_std,
    z_to_hotness,
)

NOW = datetime(2024, 8, 1, 12, 0, tzinfo=UTC)


def _record(*ages_and_likes: tuple[float | None, int]) -> Record:
    posts = [
        Post(
            post_id=str(i + 1),
            created_at=None if age is None else NOW - timedelta(days=age),
            metrics=PostMetrics(likes=likes),
        )
        for i, (age, likes) in enumerate(ages_and_likes)
    ]
    return Record(player_key="someone", posts=posts)


class TestMoments:
    def test_mean_of_empty_is_zero(self) -> None:
        assert mean([]) == 0.0

    def test_std_needs_two_values(self) -> None:
        assert sample_std([4.0], 4.0) == 0.0

    def test_sample_std_uses_n_minus_one(self) -> None:
        assert sample_std([0.0, 2.0], 1.0) == pytest.approx(math.sqrt(2))


class TestHotness:
    def test_z_clamped(self) -> None:
        assert z_to_hotness(-5) == 0.0
        assert z_to_hotness(0) == 25.0
        assert z_to_hotness(10) == 100.0

    def test_identical_population_is_all_25(self) -> None:
        assert hotness_scores([3.3, 3.3, 3.3]) == [25.0, 25.0, 25.0]

    def test_single_record_is_25(self) -> None:
        assert hotness_scores([7.0]) == [25.0]

    def test_empty_population(self) -> None:
        assert hotness_scores([]) == []

    def test_two_values(self) -> None:
        low, high = hotness_scores([0.0, 2.0])
        assert low == pytest.approx(25 - 25 / math.sqrt(2))
        assert high == pytest.approx(25 + 25 / math.sqrt(2))

    def test_order_preserved_and_bounded(self) -> None:
        raw = [1.0, 30.0, 3.0, 3.0, 0.0, 12.5]
        hot = hotness_scores(raw)
        assert all(0.0 <= h <= 100.0 for h in hot)
        by_raw = sorted(range(len(raw)), key=lambda i: raw[i])
        by_hot = sorted(range(len(raw)), key=lambda i: hot[i])
        assert by_raw == by_hot
        assert hot[2] == hot[3]


class TestRecentWindow:
    def test_recent_raw_scores(self) -> None:
        records = [
            _record((1, 10), (30, 1000)),
            _record((10, 5)),
            _record((None, 5)),
        ]
        scores = recent_raw_scores(records, NOW)
        assert scores[0] == pytest.approx(math.log(11))
        assert scores[1] is None
        assert scores[2] is None

    def test_falls_back_to_overall_when_sample_small(self) -> None:
        overall = [10.0, 20.0, 30.0, 40.0, 50.0]
        raw_recent = [1.0, 2.0, None, 3.0, 4.0]
        assert recent_hotness(raw_recent, overall) == overall

    def test_uses_recent_population_when_large_enough(self) -> None:
        overall = [99.0] * 6
        raw_recent = [1.0, 2.0, 3.0, 4.0, 5.0, None]
        result = recent_hotness(raw_recent, overall)
        assert result[-1] == 0.0
        assert result[2] == pytest.approx(25.0)
        assert result[0] < result[1] < result[2] < result[3] < result[4]
