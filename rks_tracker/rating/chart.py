"""
Per-Chart Rating

This module holds the one rating formula every other part of the tracker
uses, and reduces a player's score history to a single best play per chart:
- chart_rating: difficulty rating scaled by how far accuracy clears 55%
- compute_chart_bests: highest accuracy per (song, difficulty), first play kept on ties
- validate_record: range checks shared by the reducer, the stores and the importers

Usage:
    from rks_tracker.rating.chart import compute_chart_bests, chart_rating
"""

from collections.abc import Iterable

from rks_tracker.config import (
    DIFFICULTY_TIERS,
    DEFAULT_DIFFICULTY_RATINGS,
    RATING_ACCURACY_THRESHOLD,
    RATING_ACCURACY_SPAN,
    PERFECT_ACCURACY,
    MIN_ACCURACY,
    MAX_ACCURACY,
    MIN_RAW_SCORE,
    MAX_RAW_SCORE,
    GOOD_NOTE_WEIGHT,
)
from rks_tracker.errors import InvalidRecordError
from rks_tracker.models import ChartBest, ChartKey, ScoreRecord
from rks_tracker.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


def chart_rating(accuracy, difficulty_rating):
    """
    Calculate the rating a single play earns on a chart.

    Accuracy stays on the 0-100 percentage scale; the threshold and span
    constants are expressed on that same scale.
    """
    if accuracy < RATING_ACCURACY_THRESHOLD:
        return 0.0
    return difficulty_rating * ((accuracy - RATING_ACCURACY_THRESHOLD) / RATING_ACCURACY_SPAN) ** 2


def resolve_difficulty_rating(record: ScoreRecord) -> float:
    """Return the record's difficulty rating, or the tier default when it was never captured."""
    if record.difficulty_rating is not None:
        return float(record.difficulty_rating)
    return DEFAULT_DIFFICULTY_RATINGS[record.difficulty]


def is_phi(record: ScoreRecord) -> bool:
    """A phi is a play with exactly 100% accuracy."""
    return record.accuracy == PERFECT_ACCURACY


def validate_record(record: ScoreRecord) -> None:
    """
    Check that a record can take part in rating and statistics.

    Out-of-range values are rejected rather than clamped, so a bad row can
    never shift an average.

    Args:
        record: ScoreRecord to check

    Raises:
        InvalidRecordError: If any field is outside its accepted range
    """
    if record.difficulty not in DIFFICULTY_TIERS:
        raise InvalidRecordError(
            f"Unknown difficulty '{record.difficulty}' for '{record.song_name}'. "
            f"Allowed values: {', '.join(DIFFICULTY_TIERS)}"
        )

    if not (MIN_ACCURACY <= record.accuracy <= MAX_ACCURACY):
        raise InvalidRecordError(
            f"Accuracy {record.accuracy} for '{record.song_name}' [{record.difficulty}] "
            f"is outside [{MIN_ACCURACY:g}, {MAX_ACCURACY:g}]"
        )

    if isinstance(record.score, bool) or not isinstance(record.score, int):
        raise InvalidRecordError(f"Score for '{record.song_name}' must be an integer, got {record.score!r}")

    if not (MIN_RAW_SCORE <= record.score <= MAX_RAW_SCORE):
        raise InvalidRecordError(
            f"Score {record.score:,} for '{record.song_name}' [{record.difficulty}] "
            f"is outside [{MIN_RAW_SCORE}, {MAX_RAW_SCORE:,}]"
        )

    if record.difficulty_rating is not None and not record.difficulty_rating > 0:
        raise InvalidRecordError(
            f"Difficulty rating {record.difficulty_rating} for '{record.song_name}' must be positive"
        )


def valid_records(records: Iterable[ScoreRecord]) -> list[ScoreRecord]:
    """
    Filter out records that fail validate_record, logging each one skipped.

    Args:
        records: Score records in submission order

    Returns:
        List of valid records, order preserved
    """
    kept = []
    for record in records:
        try:
            validate_record(record)
        except InvalidRecordError as e:
            logger.warning(f"Skipping invalid record {record.score_id or '<unsaved>'}: {e}")
            continue
        kept.append(record)
    return kept


def calculate_accuracy(note_count: int, goods: int, bads_misses: int) -> float:
    """
    Calculate play accuracy from judgement counts.

    Perfects count fully and goods count for GOOD_NOTE_WEIGHT of a note.

    Args:
        note_count: Total notes in the chart
        goods: Number of good judgements
        bads_misses: Number of bad judgements plus misses

    Returns:
        Accuracy as a percentage in [0, 100]

    Raises:
        InvalidRecordError: If the counts cannot describe a real play
    """
    if note_count <= 0:
        raise InvalidRecordError(f"Note count must be positive, got {note_count}")
    if goods < 0 or bads_misses < 0:
        raise InvalidRecordError(f"Judgement counts must be non-negative, got goods={goods}, bads_misses={bads_misses}")

    perfect = note_count - goods - bads_misses
    if perfect < 0:
        raise InvalidRecordError(
            f"{goods} goods + {bads_misses} bads/misses exceed the chart's {note_count} notes"
        )

    return (perfect + goods * GOOD_NOTE_WEIGHT) / note_count * 100


def rate_record(record: ScoreRecord) -> ChartBest:
    """Wrap a record with its difficulty rating and chart rating."""
    difficulty_rating = resolve_difficulty_rating(record)
    return ChartBest(
        record=record,
        chart_rating=chart_rating(record.accuracy, difficulty_rating),
        difficulty_rating=difficulty_rating,
    )


def compute_chart_bests(records: Iterable[ScoreRecord]) -> dict[ChartKey, ChartBest]:
    """
    Reduce a score history to the best play on each chart.

    The best play is the one with the highest accuracy. On an exact accuracy
    tie the play seen first is kept, so the result depends only on input order.
    Charts whose best play is under the rating threshold are kept with a
    rating of 0.

    Args:
        records: Score records, in the order they were submitted

    Returns:
        Dict of ChartKey -> ChartBest, in first-seen chart order
    """
    best_records: dict[ChartKey, ScoreRecord] = {}

    for record in valid_records(records):
        key = record.chart_key
        existing = best_records.get(key)
        if existing is None or record.accuracy > existing.accuracy:
            best_records[key] = record

    return {key: rate_record(record) for key, record in best_records.items()}


def sort_scores_for_display(records: Iterable[ScoreRecord]) -> list[ScoreRecord]:
    """
    Order plays for a score list: highest chart rating first, then highest accuracy.

    Invalid records are dropped.
    """
    rated = [rate_record(record) for record in valid_records(records)]
    rated.sort(key=lambda entry: (entry.chart_rating, entry.accuracy), reverse=True)
    return [entry.record for entry in rated]
