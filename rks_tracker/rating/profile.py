"""
Player Profile

The numbers on a player's overview: overall RKS, play counts per tier, phi
counts per tier and the hardest chart the player has phi'd.
"""

from collections.abc import Sequence

from rks_tracker.config import DIFFICULTY_TIERS
from rks_tracker.models import PlayerProfile, ScoreRecord
from rks_tracker.rating.aggregate import compute_overall_rating
from rks_tracker.rating.chart import is_phi, resolve_difficulty_rating, valid_records
from rks_tracker.store import ScoreStore


def build_player_profile(records: Sequence[ScoreRecord]) -> PlayerProfile:
    """
    Summarise one player's score history.

    Args:
        records: Every score record of the player

    Returns:
        PlayerProfile; the highest phi is the largest difficulty rating among
        phi plays, with its chart (first seen on ties)
    """
    records = valid_records(records)
    phis = [r for r in records if is_phi(r)]

    highest_phi = 0.0
    highest_phi_chart = None
    for record in phis:
        rating = resolve_difficulty_rating(record)
        if rating > highest_phi:
            highest_phi = rating
            highest_phi_chart = record.chart_key

    return PlayerProfile(
        overall_rating=compute_overall_rating(records),
        total_scores=len(records),
        total_phis=len(phis),
        phis_by_difficulty={tier: sum(1 for r in phis if r.difficulty == tier) for tier in DIFFICULTY_TIERS},
        scores_by_difficulty={tier: sum(1 for r in records if r.difficulty == tier) for tier in DIFFICULTY_TIERS},
        highest_phi=highest_phi,
        highest_phi_chart=highest_phi_chart,
    )


def load_player_profile(store: ScoreStore, owner_id: str) -> PlayerProfile:
    """
    Build a player's profile from the store.

    StoreUnavailableError propagates: without the player's scores there is
    nothing to show.
    """
    return build_player_profile(store.list_scores_for_user(owner_id))
