"""
Tests for the per-chart rating formula and best-play reduction.
"""

import pytest

from rks_tracker.config import DEFAULT_DIFFICULTY_RATINGS
from rks_tracker.errors import InvalidRecordError
from rks_tracker.models import ChartKey
from rks_tracker.rating.chart import (
    calculate_accuracy,
    chart_rating,
    compute_chart_bests,
    resolve_difficulty_rating,
    sort_scores_for_display,
    validate_record,
)


class TestChartRating:
    """Tests for chart_rating function."""

    def test_below_threshold_is_zero(self):
        assert chart_rating(54.99, 15.0) == 0.0

    def test_at_threshold_is_zero(self):
        assert chart_rating(55.0, 15.0) == 0.0

    def test_perfect_equals_difficulty(self):
        assert chart_rating(100.0, 13.5) == pytest.approx(13.5)

    def test_midpoint_is_quarter(self):
        # (77.5 - 55) / 45 = 0.5, squared = 0.25
        assert chart_rating(77.5, 12.0) == pytest.approx(3.0)

    def test_uses_percentage_scale(self):
        # A fraction-scale accuracy must not be mistaken for a high percentage
        assert chart_rating(0.99, 15.0) == 0.0

    def test_monotonic_in_accuracy(self):
        ratings = [chart_rating(acc, 10.0) for acc in range(0, 101, 5)]
        for i in range(len(ratings) - 1):
            assert ratings[i] <= ratings[i + 1]


class TestResolveDifficultyRating:
    """Tests for the tier default fallback."""

    @pytest.mark.parametrize("tier", ["EZ", "HD", "IN", "AT"])
    def test_falls_back_to_tier_default(self, make_record, tier):
        record = make_record(difficulty=tier)
        assert resolve_difficulty_rating(record) == DEFAULT_DIFFICULTY_RATINGS[tier]

    def test_explicit_rating_wins(self, make_record):
        record = make_record(difficulty="IN", difficulty_rating=13.7)
        assert resolve_difficulty_rating(record) == 13.7


class TestValidateRecord:
    """Tests for validate_record function."""

    def test_accepts_valid_record(self, make_record):
        validate_record(make_record(accuracy=100.0, score=1_000_000))

    @pytest.mark.parametrize("accuracy", [-0.1, 100.01, float("nan")])
    def test_rejects_accuracy_out_of_range(self, make_record, accuracy):
        with pytest.raises(InvalidRecordError):
            validate_record(make_record(accuracy=accuracy))

    @pytest.mark.parametrize("score", [-1, 1_000_001])
    def test_rejects_score_out_of_range(self, make_record, score):
        with pytest.raises(InvalidRecordError):
            validate_record(make_record(score=score))

    def test_rejects_unknown_tier(self, make_record):
        with pytest.raises(InvalidRecordError):
            validate_record(make_record(difficulty="SP"))

    def test_rejects_non_positive_difficulty_rating(self, make_record):
        with pytest.raises(InvalidRecordError):
            validate_record(make_record(difficulty_rating=0.0))


class TestComputeChartBests:
    """Tests for compute_chart_bests function."""

    def test_empty_input(self):
        assert compute_chart_bests([]) == {}

    def test_keeps_highest_accuracy(self, make_record):
        records = [
            make_record(accuracy=95.0, score=950_000),
            make_record(accuracy=98.5, score=940_000),
            make_record(accuracy=97.0, score=990_000),
        ]
        bests = compute_chart_bests(records)

        assert len(bests) == 1
        assert bests[ChartKey("Song", "IN")].record is records[1]

    def test_exact_tie_keeps_first_seen(self, make_record):
        first = make_record(accuracy=98.0, score=970_000, score_id="first")
        second = make_record(accuracy=98.0, score=990_000, score_id="second")

        bests = compute_chart_bests([first, second])

        assert bests[ChartKey("Song", "IN")].record.score_id == "first"

    def test_charts_keyed_by_song_and_difficulty(self, make_record):
        records = [
            make_record(song="A", difficulty="HD"),
            make_record(song="A", difficulty="IN"),
            make_record(song="B", difficulty="IN"),
        ]
        bests = compute_chart_bests(records)

        assert set(bests) == {ChartKey("A", "HD"), ChartKey("A", "IN"), ChartKey("B", "IN")}

    def test_low_accuracy_chart_kept_with_zero_rating(self, make_record):
        bests = compute_chart_bests([make_record(accuracy=40.0)])
        entry = bests[ChartKey("Song", "IN")]

        assert entry.chart_rating == 0.0
        assert entry.accuracy == 40.0

    def test_rating_uses_tier_default(self, make_record):
        bests = compute_chart_bests([make_record(difficulty="AT", accuracy=100.0)])
        entry = bests[ChartKey("Song", "AT")]

        assert entry.difficulty_rating == 15.0
        assert entry.chart_rating == pytest.approx(15.0)

    def test_invalid_records_skipped(self, make_record):
        records = [
            make_record(accuracy=120.0),
            make_record(accuracy=90.0),
        ]
        bests = compute_chart_bests(records)

        assert bests[ChartKey("Song", "IN")].accuracy == 90.0

    def test_idempotent(self, make_record):
        records = [
            make_record(song="A", accuracy=91.0),
            make_record(song="A", accuracy=93.0),
            make_record(song="B", accuracy=70.0, difficulty="HD"),
        ]
        assert compute_chart_bests(records) == compute_chart_bests(records)


class TestCalculateAccuracy:
    """Tests for calculate_accuracy function."""

    def test_all_perfect(self):
        assert calculate_accuracy(1000, 0, 0) == pytest.approx(100.0)

    def test_goods_weighted(self):
        # 900 perfect + 100 * 0.65 = 965 / 1000
        assert calculate_accuracy(1000, 100, 0) == pytest.approx(96.5)

    def test_misses_count_zero(self):
        assert calculate_accuracy(1000, 0, 100) == pytest.approx(90.0)

    def test_rejects_more_judgements_than_notes(self):
        with pytest.raises(InvalidRecordError):
            calculate_accuracy(100, 80, 30)

    def test_rejects_zero_notes(self):
        with pytest.raises(InvalidRecordError):
            calculate_accuracy(0, 0, 0)

    def test_rejects_negative_counts(self):
        with pytest.raises(InvalidRecordError):
            calculate_accuracy(100, -1, 0)


class TestSortScoresForDisplay:
    """Tests for sort_scores_for_display function."""

    def test_orders_by_rating_then_accuracy(self, make_record):
        low = make_record(song="Low", difficulty="EZ", accuracy=100.0)      # 4.0
        high = make_record(song="High", difficulty="AT", accuracy=100.0)    # 15.0
        zero_a = make_record(song="ZeroA", accuracy=50.0)                   # 0
        zero_b = make_record(song="ZeroB", accuracy=54.0)                   # 0

        ordered = sort_scores_for_display([zero_a, low, zero_b, high])

        assert [r.song_name for r in ordered] == ["High", "Low", "ZeroB", "ZeroA"]
