"""
Central configuration for the RKS score tracker.

All shared constants and configuration values should be defined here
to avoid duplication and ensure consistency across modules.
"""

from pathlib import Path

# --- Project Paths ---
PROJECT_ROOT = Path(__file__).parent.parent
DATA_FOLDER = PROJECT_ROOT / "data"
SCORES_CSV = DATA_FOLDER / "scores.csv"

# --- Chart Configuration ---
DIFFICULTY_TIERS = ("EZ", "HD", "IN", "AT")  # Ordered by nominal difficulty

# Used when a row predates difficulty-rating capture
DEFAULT_DIFFICULTY_RATINGS = {
    "EZ": 4.0,
    "HD": 8.0,
    "IN": 12.0,
    "AT": 15.0,
}

# --- Chart Rating Configuration ---
RATING_ACCURACY_THRESHOLD = 55.0  # Plays below this accuracy rate 0
RATING_ACCURACY_SPAN = 45.0       # 100 - threshold, same percentage scale
PERFECT_ACCURACY = 100.0          # A "phi"

# --- Overall Rating Configuration ---
TOP_RATED_SLOTS = 27   # Best charts by rating
PERFECT_SLOTS = 3      # Reserved slots for phi plays
RKS_DENOMINATOR = 30   # Fixed cohort size, missing slots count as 0

# --- Record Bounds ---
MIN_ACCURACY = 0.0
MAX_ACCURACY = 100.0
MIN_RAW_SCORE = 0
MAX_RAW_SCORE = 1_000_000

# Good judgements count for 65% of a perfect
GOOD_NOTE_WEIGHT = 0.65

# --- Leaderboard Configuration ---
RANK_ZERO_SCORE_USERS = False  # Users without scores are left out of total_users
FETCH_MAX_WORKERS = 8
FETCH_TIMEOUT_SECONDS = 10.0
LEADERBOARD_REPORT_ROWS = 20

# --- Input Validation ---
MAX_INPUT_SIZE = 200_000  # Maximum pasted import size in bytes (~200KB)
IMPORT_MIN_COLUMNS = 8    # rank | grade | acc | rks | score | diff | diffRating | song

# --- Export Format ---
EXPORT_VERSION = "1.0"
