"""
Shared fixtures for score tracker tests.
"""

import pytest

from rks_tracker.models import ScoreRecord


@pytest.fixture
def make_record():
    """Factory for ScoreRecords with sensible defaults."""

    def _make(song="Song", difficulty="IN", accuracy=99.0, score=980_000,
              owner_id="alice", difficulty_rating=None, **kwargs):
        return ScoreRecord(
            owner_id=owner_id,
            song_name=song,
            difficulty=difficulty,
            score=score,
            accuracy=accuracy,
            difficulty_rating=difficulty_rating,
            **kwargs,
        )

    return _make
