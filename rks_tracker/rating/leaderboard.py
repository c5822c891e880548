"""
Global RKS Leaderboard

This module ranks every user by overall rating. The same reduction and
aggregation used for a single player is applied per user.

Fetching is the only I/O: each user's scores are loaded from the store in a
thread pool, and a user whose fetch fails or times out is left out of the
ranking instead of failing the whole request.

Usage:
    python -m rks_tracker.rating.leaderboard
    OR
    from rks_tracker.rating.leaderboard import compute_rank, rank_users
"""

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, wait

import pandas as pd

from rks_tracker.config import (
    RANK_ZERO_SCORE_USERS,
    FETCH_MAX_WORKERS,
    FETCH_TIMEOUT_SECONDS,
    LEADERBOARD_REPORT_ROWS,
)
from rks_tracker.errors import StoreUnavailableError
from rks_tracker.models import RankResult, ScoreRecord
from rks_tracker.rating.aggregate import aggregate_overall_rating
from rks_tracker.rating.chart import compute_chart_bests
from rks_tracker.store import CsvScoreStore, ScoreStore
from rks_tracker.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

LEADERBOARD_COLUMNS = ['rank', 'owner_id', 'rks', 'charts_played', 'total_scores']


def rank_users(all_users_scores: Mapping[str, Sequence[ScoreRecord]],
               include_zero_score_users: bool = RANK_ZERO_SCORE_USERS) -> pd.DataFrame:
    """
    Rate every user and sort them into a leaderboard.

    Ties keep the iteration order of all_users_scores.

    Args:
        all_users_scores: owner_id -> that user's score records
        include_zero_score_users: Rank users without scores at 0 instead of leaving them out

    Returns:
        DataFrame with columns [rank, owner_id, rks, charts_played, total_scores],
        rank 1 first
    """
    entries = []
    for owner_id, records in all_users_scores.items():
        if not records and not include_zero_score_users:
            continue
        chart_bests = compute_chart_bests(records)
        entries.append({
            'owner_id': owner_id,
            'rks': aggregate_overall_rating(chart_bests.values()),
            'charts_played': len(chart_bests),
            'total_scores': len(records),
        })

    entries.sort(key=lambda entry: entry['rks'], reverse=True)
    for position, entry in enumerate(entries, start=1):
        entry['rank'] = position

    return pd.DataFrame(entries, columns=LEADERBOARD_COLUMNS)


def find_rank(all_users_scores: Mapping[str, Sequence[ScoreRecord]], target_owner_id: str,
              include_zero_score_users: bool = RANK_ZERO_SCORE_USERS) -> RankResult:
    """
    Locate one user on the leaderboard built from already-loaded scores.

    Returns:
        RankResult with rank None when the user is not ranked
    """
    leaderboard = rank_users(all_users_scores, include_zero_score_users)
    match = leaderboard.loc[leaderboard['owner_id'] == target_owner_id, 'rank']
    rank = int(match.iloc[0]) if not match.empty else None
    return RankResult(rank=rank, total_users=len(leaderboard))


def fetch_all_user_scores(store: ScoreStore, max_workers: int = FETCH_MAX_WORKERS,
                          timeout: float | None = FETCH_TIMEOUT_SECONDS):
    """
    Load every user's scores from the store in parallel.

    A user whose fetch raises StoreUnavailableError, or has not finished when
    the timeout expires, is reported as skipped rather than raised.

    Timed-out fetches cannot be interrupted: the pool is shut down without
    waiting, so their threads keep running in the background until the store
    call returns, and a fetch that never returns blocks interpreter exit.

    Args:
        store: ScoreStore to read from
        max_workers: Thread pool size
        timeout: Seconds to wait for all fetches (None waits forever)

    Returns:
        Tuple of (dict of owner_id -> records in list_all_users order, list of skipped owner_ids)
    """
    owner_ids = store.list_all_users()
    if not owner_ids:
        return {}, []

    executor = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(owner_ids))),
                                  thread_name_prefix="score-fetch")
    try:
        futures = {owner_id: executor.submit(store.list_scores_for_user, owner_id) for owner_id in owner_ids}
        wait(futures.values(), timeout=timeout)

        all_users_scores = {}
        skipped = []
        for owner_id, future in futures.items():
            if not future.done():
                future.cancel()
                logger.warning(f"Timed out fetching scores for {owner_id}; leaving them out of the ranking")
                skipped.append(owner_id)
                continue
            try:
                all_users_scores[owner_id] = future.result()
            except StoreUnavailableError as e:
                logger.warning(f"Could not fetch scores for {owner_id}: {e}; leaving them out of the ranking")
                skipped.append(owner_id)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    return all_users_scores, skipped


def compute_rank(store: ScoreStore, owner_id: str, max_workers: int = FETCH_MAX_WORKERS,
                 timeout: float | None = FETCH_TIMEOUT_SECONDS,
                 include_zero_score_users: bool = RANK_ZERO_SCORE_USERS) -> RankResult:
    """
    Find a user's position on the global leaderboard.

    Users whose scores could not be fetched are excluded from both the
    ranking and total_users and listed in RankResult.skipped_users.

    Args:
        store: ScoreStore holding every user's scores
        owner_id: User to locate
        max_workers: Thread pool size for the per-user fetches
        timeout: Seconds to wait for all fetches
        include_zero_score_users: Rank users without scores at 0 instead of leaving them out

    Returns:
        RankResult for owner_id
    """
    all_users_scores, skipped = fetch_all_user_scores(store, max_workers, timeout)
    result = find_rank(all_users_scores, owner_id, include_zero_score_users)

    if skipped:
        logger.warning(
            f"Partial ranking: {len(skipped)} of {len(all_users_scores) + len(skipped)} users skipped"
        )

    return RankResult(rank=result.rank, total_users=result.total_users, skipped_users=tuple(skipped))


def main(store: ScoreStore | None = None) -> pd.DataFrame:
    """Log the current leaderboard for the CSV store."""
    store = store or CsvScoreStore()
    logger.info("=" * 60)
    logger.info(f"Building RKS leaderboard from {getattr(store, 'path', type(store).__name__)}")
    logger.info("=" * 60)

    all_users_scores, skipped = fetch_all_user_scores(store)
    leaderboard = rank_users(all_users_scores)

    if skipped:
        logger.warning(f"Skipped users: {', '.join(skipped)}")

    if leaderboard.empty:
        logger.info("No scores recorded yet.")
        return leaderboard

    logger.info(f"Top {LEADERBOARD_REPORT_ROWS} players by RKS:")
    logger.info("\n" + leaderboard.head(LEADERBOARD_REPORT_ROWS).round({'rks': 2}).to_string(index=False))
    logger.info(f"Ranked players: {len(leaderboard)}")
    logger.info(f"  Mean RKS: {leaderboard['rks'].mean():.2f}")
    logger.info(f"  Median RKS: {leaderboard['rks'].median():.2f}")
    logger.info(f"  Max RKS: {leaderboard['rks'].max():.2f}")

    return leaderboard


if __name__ == "__main__":
    main()
