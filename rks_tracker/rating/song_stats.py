"""
Song and Chart Statistics

Descriptive numbers for every chart, built from all plays of all users:
- compute_song_stats: phi count, average accuracy, average score, play count
- compute_chart_leaderboards: who holds the highest score and highest accuracy

Nothing here feeds the RKS calculation; unlike the per-chart reducer these
aggregate across every play rather than keeping one best.

Usage:
    from rks_tracker.rating.song_stats import compute_song_stats
"""

import math
from collections.abc import Iterable, Mapping

import pandas as pd

from rks_tracker.config import PERFECT_ACCURACY
from rks_tracker.models import ChartKey, ScoreRecord, SongStats
from rks_tracker.rating.chart import valid_records


def _plays_frame(records: Iterable[ScoreRecord]) -> pd.DataFrame:
    rows = [
        {
            'song_name': r.song_name,
            'difficulty': r.difficulty,
            'owner_id': r.owner_id,
            'score': r.score,
            'accuracy': r.accuracy,
        }
        for r in valid_records(records)
    ]
    return pd.DataFrame(rows, columns=['song_name', 'difficulty', 'owner_id', 'score', 'accuracy'])


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _round_accuracy(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def compute_song_stats(all_records: Iterable[ScoreRecord]) -> dict[ChartKey, SongStats]:
    """
    Summarise every play of every chart.

    Args:
        all_records: Score records from all users; invalid ones are skipped

    Returns:
        Dict of ChartKey -> SongStats, in first-seen chart order. Average
        accuracy is rounded to 2 decimals and average score to the nearest
        integer, both with halves rounding up.
    """
    df = _plays_frame(all_records)
    if df.empty:
        return {}

    df['is_phi'] = (df['accuracy'] == PERFECT_ACCURACY).astype(int)
    grouped = df.groupby(['song_name', 'difficulty'], sort=False).agg(
        number_of_phis=('is_phi', 'sum'),
        average_accuracy=('accuracy', 'mean'),
        average_score=('score', 'mean'),
        total_plays=('score', 'size'),
    )

    stats = {}
    for (song_name, difficulty), row in grouped.iterrows():
        stats[ChartKey(song_name, difficulty)] = SongStats(
            number_of_phis=int(row['number_of_phis']),
            average_accuracy=_round_accuracy(float(row['average_accuracy'])),
            average_score=_round_half_up(float(row['average_score'])),
            total_plays=int(row['total_plays']),
        )
    return stats


def compute_chart_leaderboards(all_records: Iterable[ScoreRecord],
                               user_names: Mapping[str, str] | None = None) -> dict[ChartKey, dict]:
    """
    Find the highest-score and highest-accuracy holders of every chart.

    The first play to reach a maximum keeps the spot on ties.

    Args:
        all_records: Score records from all users
        user_names: Optional owner_id -> display name; unknown ids show as "Unknown User"

    Returns:
        Dict of ChartKey -> {'highest_score': {...}, 'highest_accuracy': {...}},
        each holder being a dict of score, accuracy, owner_id, user_name
    """
    df = _plays_frame(all_records)
    if df.empty:
        return {}

    names = user_names or {}
    df['user_name'] = df['owner_id'].map(lambda owner_id: names.get(owner_id, "Unknown User"))

    def holder(row) -> dict:
        return {
            'score': int(row['score']),
            'accuracy': float(row['accuracy']),
            'owner_id': row['owner_id'],
            'user_name': row['user_name'],
        }

    leaderboards = {}
    for (song_name, difficulty), group in df.groupby(['song_name', 'difficulty'], sort=False):
        # idxmax returns the first occurrence of the maximum
        leaderboards[ChartKey(song_name, difficulty)] = {
            'highest_score': holder(group.loc[group['score'].idxmax()]),
            'highest_accuracy': holder(group.loc[group['accuracy'].idxmax()]),
        }
    return leaderboards
