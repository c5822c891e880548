"""
Score Storage

The rating code never talks to a database directly; it is handed a ScoreStore.
Two implementations are provided:
- InMemoryScoreStore: dict-backed, for callers that already hold scores in memory
- CsvScoreStore: a single CSV file, rewritten atomically on every change

Rows are only ever inserted or deleted, never updated.
"""

import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, replace
from datetime import datetime
from pathlib import Path

import pandas as pd

from rks_tracker.config import SCORES_CSV
from rks_tracker.errors import StoreUnavailableError
from rks_tracker.models import ScoreRecord
from rks_tracker.rating.chart import validate_record
from rks_tracker.utils import setup_logging, atomic_write_csv

# --- Module Logger ---
logger = setup_logging(__name__)

SCORE_COLUMNS = [
    'score_id',
    'owner_id',
    'song_name',
    'difficulty',
    'difficulty_rating',
    'score',
    'accuracy',
    'goods',
    'bads_misses',
    'created_at',
]

REQUIRED_COLUMNS = ['owner_id', 'song_name', 'difficulty', 'score', 'accuracy']


class ScoreStore(ABC):
    """Storage collaborator the rating and ranking code reads from."""

    @abstractmethod
    def list_scores_for_user(self, owner_id: str) -> list[ScoreRecord]:
        """Return every play of one user, empty if they have none."""

    @abstractmethod
    def list_all_users(self) -> list[str]:
        """Return every known user id."""

    @abstractmethod
    def list_all_scores(self) -> list[ScoreRecord]:
        """Return every play of every user."""

    @abstractmethod
    def insert_score(self, record: ScoreRecord) -> ScoreRecord:
        """Validate and store a play, returning it with its assigned score_id."""

    @abstractmethod
    def delete_score(self, owner_id: str, score_id: str) -> bool:
        """Delete one of a user's plays. Returns False if it did not exist."""

    @staticmethod
    def _prepare(record: ScoreRecord) -> ScoreRecord:
        validate_record(record)
        return replace(
            record,
            score_id=record.score_id or uuid.uuid4().hex,
            created_at=record.created_at or datetime.now(),
        )


class InMemoryScoreStore(ScoreStore):
    """Dict-backed store. Users can be registered before they have any scores."""

    def __init__(self, records=None, users=None):
        self._scores: dict[str, list[ScoreRecord]] = {}
        for owner_id in users or []:
            self.register_user(owner_id)
        for record in records or []:
            self.insert_score(record)

    def register_user(self, owner_id: str) -> None:
        self._scores.setdefault(owner_id, [])

    def list_scores_for_user(self, owner_id: str) -> list[ScoreRecord]:
        return list(self._scores.get(owner_id, []))

    def list_all_users(self) -> list[str]:
        return list(self._scores)

    def list_all_scores(self) -> list[ScoreRecord]:
        return [record for records in self._scores.values() for record in records]

    def insert_score(self, record: ScoreRecord) -> ScoreRecord:
        stored = self._prepare(record)
        self._scores.setdefault(stored.owner_id, []).append(stored)
        return stored

    def delete_score(self, owner_id: str, score_id: str) -> bool:
        records = self._scores.get(owner_id, [])
        for i, record in enumerate(records):
            if record.score_id == score_id:
                del records[i]
                return True
        return False


class CsvScoreStore(ScoreStore):
    """
    Store backed by one CSV file.

    The file is read on every call, so ratings always reflect the latest
    inserts and deletes. A missing file is an empty store.
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else SCORES_CSV
        self._write_lock = threading.Lock()

    def _load_frame(self) -> pd.DataFrame:
        if not self.path.exists():
            return pd.DataFrame(columns=SCORE_COLUMNS)

        try:
            # Everything as text so song names like "NA" survive
            df = pd.read_csv(self.path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return pd.DataFrame(columns=SCORE_COLUMNS)
        except (OSError, pd.errors.ParserError) as e:
            raise StoreUnavailableError(f"Could not read scores from {self.path}: {e}") from e

        missing = set(SCORE_COLUMNS) - set(df.columns)
        if missing:
            raise StoreUnavailableError(f"{self.path} is missing columns: {sorted(missing)}")

        df = df[SCORE_COLUMNS].copy()
        try:
            for column in ['score', 'accuracy', 'difficulty_rating', 'goods', 'bads_misses']:
                df[column] = pd.to_numeric(df[column].mask(df[column] == ''))
            df['created_at'] = pd.to_datetime(df['created_at'].mask(df['created_at'] == ''), format='ISO8601')
        except ValueError as e:
            raise StoreUnavailableError(f"Malformed score data in {self.path}: {e}") from e

        return df

    def _save_frame(self, df: pd.DataFrame) -> None:
        df = df[SCORE_COLUMNS].copy()
        df['created_at'] = df['created_at'].map(lambda ts: '' if pd.isna(ts) else pd.Timestamp(ts).isoformat())
        try:
            atomic_write_csv(df, self.path, index=False)
        except OSError as e:
            raise StoreUnavailableError(f"Could not write scores to {self.path}: {e}") from e

    @staticmethod
    def _record_from_row(row: dict) -> ScoreRecord:
        def optional(value, cast):
            return None if pd.isna(value) else cast(value)

        return ScoreRecord(
            owner_id=row['owner_id'],
            song_name=row['song_name'],
            difficulty=row['difficulty'],
            score=int(row['score']),
            accuracy=float(row['accuracy']),
            created_at=optional(row['created_at'], lambda ts: ts.to_pydatetime()),
            difficulty_rating=optional(row['difficulty_rating'], float),
            goods=optional(row['goods'], int),
            bads_misses=optional(row['bads_misses'], int),
            score_id=row['score_id'],
        )

    def _records(self, df: pd.DataFrame) -> list[ScoreRecord]:
        # Only the rows being returned are checked, so one broken row makes
        # its owner unavailable without affecting other users
        blank = df[REQUIRED_COLUMNS].isna() | (df[REQUIRED_COLUMNS] == '')
        if blank.any().any():
            columns = blank.columns[blank.any()].tolist()
            raise StoreUnavailableError(f"{self.path} has rows with blank {columns}")
        return [self._record_from_row(row) for row in df.to_dict('records')]

    def list_scores_for_user(self, owner_id: str) -> list[ScoreRecord]:
        df = self._load_frame()
        return self._records(df[df['owner_id'] == owner_id])

    def list_all_users(self) -> list[str]:
        owner_ids = self._load_frame()['owner_id']
        return owner_ids[owner_ids != ''].drop_duplicates().tolist()

    def list_all_scores(self) -> list[ScoreRecord]:
        return self._records(self._load_frame())

    def insert_score(self, record: ScoreRecord) -> ScoreRecord:
        stored = self._prepare(record)
        with self._write_lock:
            df = self._load_frame()
            df_new = pd.DataFrame([asdict(stored)], columns=SCORE_COLUMNS)
            df = df_new if df.empty else pd.concat([df, df_new], ignore_index=True)
            self._save_frame(df)
        logger.debug(f"Stored score {stored.score_id} for {stored.owner_id}")
        return stored

    def delete_score(self, owner_id: str, score_id: str) -> bool:
        with self._write_lock:
            df = self._load_frame()
            mask = (df['owner_id'] == owner_id) & (df['score_id'] == score_id)
            if not mask.any():
                return False
            self._save_frame(df[~mask])
        logger.debug(f"Deleted score {score_id} for {owner_id}")
        return True
