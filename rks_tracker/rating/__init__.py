"""
RKS Rating System

Modules:
- chart: Per-chart rating formula and best-play reduction
- aggregate: Overall rating from the top chart ratings
- leaderboard: Cross-user ranking
- song_stats: Per-chart statistics across all users
- profile: Player overview numbers
"""


def __getattr__(name):
    """Lazy imports so the store can depend on rating.chart without a cycle."""
    if name in ("chart_rating", "compute_chart_bests", "validate_record"):
        from rks_tracker.rating import chart
        return getattr(chart, name)
    if name == "compute_overall_rating":
        from rks_tracker.rating.aggregate import compute_overall_rating
        return compute_overall_rating
    if name in ("compute_rank", "rank_users"):
        from rks_tracker.rating import leaderboard
        return getattr(leaderboard, name)
    if name == "compute_song_stats":
        from rks_tracker.rating.song_stats import compute_song_stats
        return compute_song_stats
    if name == "build_player_profile":
        from rks_tracker.rating.profile import build_player_profile
        return build_player_profile
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
