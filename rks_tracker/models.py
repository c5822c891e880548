"""
Data models for the RKS score tracker.

ScoreRecord is the only persisted fact. ChartBest, SongStats, RankResult and
PlayerProfile are derived on every read and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple, Optional


class ChartKey(NamedTuple):
    """A playable chart: one song at one difficulty tier."""

    song_name: str
    difficulty: str


@dataclass(frozen=True)
class ScoreRecord:
    """
    One submitted play.

    - difficulty_rating is optional; historical rows fall back to the tier default
    - goods / bads_misses are the judgement counts when the play was entered by hand
    - score_id is assigned by the store on insert
    """

    owner_id: str
    song_name: str
    difficulty: str
    score: int
    accuracy: float
    created_at: Optional[datetime] = None
    difficulty_rating: Optional[float] = None
    goods: Optional[int] = None
    bads_misses: Optional[int] = None
    score_id: Optional[str] = None

    @property
    def chart_key(self) -> ChartKey:
        return ChartKey(self.song_name, self.difficulty)


@dataclass(frozen=True)
class ChartBest:
    """The best play on a chart and the rating it earns."""

    record: ScoreRecord
    chart_rating: float
    difficulty_rating: float

    @property
    def chart_key(self) -> ChartKey:
        return self.record.chart_key

    @property
    def accuracy(self) -> float:
        return self.record.accuracy


@dataclass(frozen=True)
class SongStats:
    """Descriptive statistics for every play of one chart, across all users."""

    number_of_phis: int
    average_accuracy: float
    average_score: int
    total_plays: int


@dataclass(frozen=True)
class RankResult:
    """
    A user's position on the global leaderboard.

    rank is None when the user is not on the leaderboard. skipped_users lists
    users whose scores could not be fetched; they are not part of total_users.
    """

    rank: Optional[int]
    total_users: int
    skipped_users: tuple[str, ...] = ()

    @property
    def is_partial(self) -> bool:
        return bool(self.skipped_users)


@dataclass(frozen=True)
class PlayerProfile:
    """Summary numbers shown on a player's overview."""

    overall_rating: float
    total_scores: int
    total_phis: int
    phis_by_difficulty: dict[str, int] = field(default_factory=dict)
    scores_by_difficulty: dict[str, int] = field(default_factory=dict)
    highest_phi: float = 0.0
    highest_phi_chart: Optional[ChartKey] = None
