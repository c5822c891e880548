"""
Overall Rating (RKS) Aggregation

Combines a player's per-chart ratings into one number:
- The best PERFECT_SLOTS phi plays are always counted
- The remaining slots are filled from the TOP_RATED_SLOTS highest ratings
- The sum is divided by RKS_DENOMINATOR no matter how many charts were played,
  so short histories are not flattered by a small denominator

Usage:
    from rks_tracker.rating.aggregate import compute_overall_rating
"""

from collections.abc import Iterable

from rks_tracker.config import TOP_RATED_SLOTS, PERFECT_SLOTS, RKS_DENOMINATOR
from rks_tracker.models import ChartBest, ScoreRecord
from rks_tracker.rating.chart import compute_chart_bests, is_phi


def select_rating_entries(chart_bests: Iterable[ChartBest]) -> list[ChartBest]:
    """
    Pick the chart bests that count toward the overall rating.

    Phi plays are taken first (best PERFECT_SLOTS of them), then the
    TOP_RATED_SLOTS highest-rated charts fill the remaining slots. A chart
    is never counted twice.

    Args:
        chart_bests: ChartBest entries, one per chart

    Returns:
        Selected entries, phi entries first, at most RKS_DENOMINATOR long
    """
    ranked = sorted(chart_bests, key=lambda entry: entry.chart_rating, reverse=True)

    perfect = [entry for entry in ranked if is_phi(entry.record)][:PERFECT_SLOTS]
    top_rated = ranked[:TOP_RATED_SLOTS]

    selected = []
    seen_keys = set()
    for entry in perfect + top_rated:
        if len(selected) >= RKS_DENOMINATOR:
            break
        if entry.chart_key in seen_keys:
            continue
        seen_keys.add(entry.chart_key)
        selected.append(entry)

    return selected


def aggregate_overall_rating(chart_bests: Iterable[ChartBest]) -> float:
    """Average the selected chart ratings over a fixed RKS_DENOMINATOR slots."""
    selected = select_rating_entries(chart_bests)
    return sum(entry.chart_rating for entry in selected) / RKS_DENOMINATOR


def compute_overall_rating(records: Iterable[ScoreRecord]) -> float:
    """
    Compute a player's overall rating straight from their score history.

    Args:
        records: Every score record of one player

    Returns:
        Overall rating; 0.0 for an empty history
    """
    return aggregate_overall_rating(compute_chart_bests(records).values())
