"""
JSON Score Export / Import

Backup format for one user's plays:

    {"user": "<owner id>", "scores": [...], "exportDate": "<ISO timestamp>", "version": "1.0"}

Each score uses the keys songName, difficulty, difficultyRating, score,
accuracy, goods, badsMisses, date.
"""

import json
from datetime import datetime
from collections.abc import Iterable

from rks_tracker.config import EXPORT_VERSION
from rks_tracker.errors import ValidationError
from rks_tracker.models import ScoreRecord
from rks_tracker.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


def _score_to_json(record: ScoreRecord) -> dict:
    return {
        'id': record.score_id,
        'songName': record.song_name,
        'difficulty': record.difficulty,
        'difficultyRating': record.difficulty_rating,
        'score': record.score,
        'accuracy': record.accuracy,
        'goods': record.goods,
        'badsMisses': record.bads_misses,
        'date': record.created_at.isoformat() if record.created_at else None,
    }


def export_scores(owner_id: str, records: Iterable[ScoreRecord]) -> str:
    """Serialise one user's plays to the JSON backup format."""
    export_data = {
        'user': owner_id,
        'scores': [_score_to_json(r) for r in records],
        'exportDate': datetime.now().isoformat(),
        'version': EXPORT_VERSION,
    }
    return json.dumps(export_data, indent=2)


def _optional(score: dict, key: str, cast):
    value = score.get(key)
    return None if value is None or value == '' else cast(value)


def _parse_date(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unreadable date {value!r}")
        return None


def import_scores(json_data: str, owner_id: str) -> list[ScoreRecord]:
    """
    Read plays from a JSON backup, assigning them to owner_id.

    Records are returned unsaved and unvalidated; ScoreStore.insert_score
    rejects any that are out of range. Null or empty difficultyRating,
    goods and badsMisses values are treated as missing; 0 is kept.

    Args:
        json_data: JSON text produced by export_scores
        owner_id: User the imported plays belong to

    Returns:
        List of ScoreRecords without score_id

    Raises:
        ValidationError: If the text is not JSON, lacks a scores list, or a
                         score misses a required field
    """
    try:
        data = json.loads(json_data)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Failed to import data: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get('scores'), list):
        raise ValidationError("Invalid import data: scores not found or not an array")

    records = []
    for i, score in enumerate(data['scores'], start=1):
        try:
            records.append(ScoreRecord(
                owner_id=owner_id,
                song_name=score['songName'],
                difficulty=score['difficulty'],
                score=int(score['score']),
                accuracy=float(score['accuracy']),
                created_at=_parse_date(score.get('date')),
                difficulty_rating=_optional(score, 'difficultyRating', float),
                goods=_optional(score, 'goods', int),
                bads_misses=_optional(score, 'badsMisses', int),
            ))
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid score #{i} in import data: {e!r}") from e

    logger.info(f"Read {len(records)} scores for {owner_id} from JSON")
    return records
