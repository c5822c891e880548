"""
Tests for overall RKS aggregation.
"""

import pytest

from rks_tracker.config import RKS_DENOMINATOR
from rks_tracker.rating.aggregate import (
    aggregate_overall_rating,
    compute_overall_rating,
    select_rating_entries,
)
from rks_tracker.rating.chart import chart_rating, compute_chart_bests


def _charts(make_record, count, accuracy=91.0, difficulty_rating=10.0, prefix="song"):
    return [
        make_record(song=f"{prefix}{i}", accuracy=accuracy, difficulty_rating=difficulty_rating)
        for i in range(count)
    ]


class TestComputeOverallRating:
    """Tests for compute_overall_rating function."""

    def test_empty_history(self):
        assert compute_overall_rating([]) == 0.0

    def test_thirty_equal_ratings_without_phis_fill_27_slots(self, make_record):
        records = _charts(make_record, 30, accuracy=91.0, difficulty_rating=10.0)
        r = chart_rating(91.0, 10.0)

        # Phi slots stay empty but the denominator is still 30
        assert compute_overall_rating(records) == pytest.approx(27 * r / RKS_DENOMINATOR)

    def test_three_phis_over_fixed_denominator(self, make_record):
        records = [
            make_record(song="a", accuracy=100.0, difficulty_rating=10.0),
            make_record(song="b", accuracy=100.0, difficulty_rating=12.0),
            make_record(song="c", accuracy=100.0, difficulty_rating=14.0),
        ]
        assert compute_overall_rating(records) == pytest.approx(1.2)

    def test_short_history_padded_with_zeros(self, make_record):
        records = [make_record(accuracy=100.0, difficulty_rating=15.0)]
        assert compute_overall_rating(records) == pytest.approx(15.0 / RKS_DENOMINATOR)

    def test_only_best_play_per_chart_counts(self, make_record):
        records = [
            make_record(accuracy=100.0, difficulty_rating=15.0),
            make_record(accuracy=60.0, difficulty_rating=15.0),
        ]
        assert compute_overall_rating(records) == pytest.approx(15.0 / RKS_DENOMINATOR)

    def test_bounded_by_max_difficulty(self, make_record):
        records = _charts(make_record, 40, accuracy=100.0, difficulty_rating=16.0)
        records += _charts(make_record, 10, accuracy=70.0, difficulty_rating=12.0, prefix="low")

        rating = compute_overall_rating(records)

        assert 0.0 <= rating <= 16.0
        # The 3 best phis are also the top 3 rated charts, so only 27 distinct charts count
        assert rating == pytest.approx(14.4)

    def test_sub_threshold_history_rates_zero(self, make_record):
        records = _charts(make_record, 5, accuracy=50.0)
        assert compute_overall_rating(records) == 0.0


class TestSelectRatingEntries:
    """Tests for the 27 + 3 slot selection."""

    def test_empty(self):
        assert select_rating_entries([]) == []

    def test_no_phis_fill_only_27_slots(self, make_record):
        bests = compute_chart_bests(_charts(make_record, 40, accuracy=95.0))
        selected = select_rating_entries(bests.values())

        # No phis: only the top 27 regular slots are filled
        assert len(selected) == 27

    def test_phis_reserved_beyond_top_27(self, make_record):
        # 30 high-rated non-phi charts crowd the top 27
        records = _charts(make_record, 30, accuracy=99.0, difficulty_rating=16.0, prefix="hard")
        # Low-rated phis still earn the reserved slots
        records += _charts(make_record, 4, accuracy=100.0, difficulty_rating=2.0, prefix="phi")
        bests = compute_chart_bests(records)

        selected = select_rating_entries(bests.values())
        phi_entries = [e for e in selected if e.accuracy == 100.0]

        assert len(selected) == 30
        assert len(phi_entries) == 3

    def test_phi_in_top_27_not_counted_twice(self, make_record):
        records = [make_record(song="phi", accuracy=100.0, difficulty_rating=16.0)]
        records += _charts(make_record, 5, accuracy=90.0)
        bests = compute_chart_bests(records)

        selected = select_rating_entries(bests.values())
        keys = [e.chart_key for e in selected]

        assert len(keys) == len(set(keys)) == 6

    def test_phi_top_27_overlap_fills_from_top_27_only(self, make_record):
        # 3 top-rated phis overlap the top 27, leaving 27 distinct charts
        records = _charts(make_record, 3, accuracy=100.0, difficulty_rating=16.0, prefix="phi")
        records += _charts(make_record, 40, accuracy=95.0, prefix="reg")
        bests = compute_chart_bests(records)

        assert len(select_rating_entries(bests.values())) == 27

    def test_best_phis_chosen_by_rating(self, make_record):
        records = [
            make_record(song=f"phi{rating}", accuracy=100.0, difficulty_rating=float(rating))
            for rating in (3, 9, 5, 11, 7)
        ]
        records += _charts(make_record, 30, accuracy=99.5, difficulty_rating=16.0, prefix="hard")
        bests = compute_chart_bests(records)

        selected = select_rating_entries(bests.values())
        phi_ratings = sorted(e.chart_rating for e in selected if e.accuracy == 100.0)

        assert phi_ratings == pytest.approx([7.0, 9.0, 11.0])

    def test_aggregate_matches_sum_over_thirty(self, make_record):
        bests = compute_chart_bests(_charts(make_record, 10, accuracy=85.0))
        selected = select_rating_entries(bests.values())

        expected = sum(e.chart_rating for e in selected) / 30
        assert aggregate_overall_rating(bests.values()) == pytest.approx(expected)
