"""
Paste-Mode Score Import

Bulk-adds plays from a copy-pasted score table, one play per line:

    rank | grade | acc | rks | score | diff | diffRating | song name

Song names may themselves contain '|'; everything after the seventh column
is joined back together. Lines that are not score rows (headers, separators,
blank lines) are ignored.

Usage:
    python -m rks_tracker.ingestion.paste_mode

    Programmatic usage:
        from rks_tracker.ingestion.paste_mode import ingest_score_text
        result = ingest_score_text(text, store, owner_id="alice")
"""

import re
import sys

import pandas as pd

from rks_tracker.config import MAX_INPUT_SIZE, IMPORT_MIN_COLUMNS
from rks_tracker.errors import InvalidRecordError, IngestionError, ValidationError
from rks_tracker.models import ScoreRecord
from rks_tracker.rating.chart import validate_record
from rks_tracker.store import CsvScoreStore, ScoreStore
from rks_tracker.utils import setup_logging, validate_input_size

# --- Module Logger ---
logger = setup_logging(__name__)

IMPORT_COLUMNS = ['song_name', 'difficulty', 'difficulty_rating', 'score', 'accuracy']

NON_DIGIT_RE = re.compile(r"[^0-9]")
WHITESPACE_RE = re.compile(r"\s+")


def parse_score_line(line: str) -> dict | None:
    """
    Parse one pasted table row.

    Returns:
        Dict with IMPORT_COLUMNS keys, or None if the line is not a score row
    """
    cells = [c.strip() for c in line.strip().strip('|').split('|')]
    if len(cells) < IMPORT_MIN_COLUMNS:
        return None

    _rank, _grade, acc_str, _rks, score_str, diff_str, diff_rating_str, *song_parts = cells
    song_name = WHITESPACE_RE.sub(" ", " | ".join(song_parts)).strip()

    try:
        accuracy = float(acc_str.replace("%", ""))
        score = int(NON_DIGIT_RE.sub("", score_str))
    except ValueError:
        return None

    if not song_name or not diff_str:
        return None

    try:
        difficulty_rating = float(diff_rating_str)
    except ValueError:
        difficulty_rating = None  # Tier default applies

    return {
        'song_name': song_name,
        'difficulty': diff_str.upper(),
        'difficulty_rating': difficulty_rating,
        'score': score,
        'accuracy': accuracy,
    }


def parse_score_text(text: str) -> pd.DataFrame:
    """
    Parse a pasted score table into a DataFrame.

    Args:
        text: Raw pasted table

    Returns:
        DataFrame with columns: song_name, difficulty, difficulty_rating, score, accuracy

    Raises:
        ValidationError: If no score rows are found
        ValueError: If the input exceeds MAX_INPUT_SIZE
    """
    validate_input_size(text, MAX_INPUT_SIZE)

    rows = []
    for line in text.strip().splitlines():
        if not line.strip():
            continue
        row = parse_score_line(line)
        if row is None:
            logger.debug(f"Ignoring non-score line: {line!r}")
            continue
        rows.append(row)

    if not rows:
        raise ValidationError("No score rows found in text")

    return pd.DataFrame(rows, columns=IMPORT_COLUMNS)


def records_from_frame(df: pd.DataFrame, owner_id: str) -> list[ScoreRecord]:
    """Turn parsed rows into unsaved ScoreRecords for one owner."""
    records = []
    for row in df.to_dict('records'):
        rating = row['difficulty_rating']
        records.append(ScoreRecord(
            owner_id=owner_id,
            song_name=row['song_name'],
            difficulty=row['difficulty'],
            score=int(row['score']),
            accuracy=float(row['accuracy']),
            difficulty_rating=None if pd.isna(rating) else float(rating),
        ))
    return records


def validate_scores(records: list[ScoreRecord]) -> list[str]:
    """
    Validate parsed plays before they are stored.

    Args:
        records: Parsed, unsaved records

    Returns:
        List of warning messages (empty if all validations pass)

    Raises:
        ValidationError: If any record is out of range; every bad row is listed
    """
    errors = []
    for line_no, record in enumerate(records, start=1):
        try:
            validate_record(record)
        except InvalidRecordError as e:
            errors.append(f"row {line_no}: {e}")

    if errors:
        raise ValidationError("Invalid score rows:\n  " + "\n  ".join(errors))

    warnings = []
    seen = set()
    duplicates = 0
    for record in records:
        key = (record.chart_key, record.score, record.accuracy)
        if key in seen:
            duplicates += 1
        seen.add(key)
    if duplicates:
        warnings.append(f"Found {duplicates} rows repeating an earlier play in the same paste")

    missing_ratings = sum(1 for r in records if r.difficulty_rating is None)
    if missing_ratings:
        warnings.append(f"{missing_ratings} rows have no difficulty rating; tier defaults will be used")

    return warnings


def ingest_score_text(text: str, store: ScoreStore, owner_id: str, dry_run: bool = False) -> dict:
    """
    Main entry point for paste-mode import.

    Args:
        text: Raw pasted score table
        store: Store that receives the plays
        owner_id: User the plays belong to
        dry_run: If True, validate only without saving

    Returns:
        Dictionary with:
            - success: bool
            - rows: number of rows parsed
            - warnings: list of warning messages
            - records: stored records (parsed records on a dry run)

    Raises:
        ValidationError: If parsing or validation fails
        IngestionError: If owner_id is empty
    """
    if not owner_id or not owner_id.strip():
        raise IngestionError("An owner id is required to import scores")

    result = {
        'success': False,
        'rows': 0,
        'warnings': [],
        'records': [],
    }

    # Step 1: Parse the text
    logger.info("Parsing score text...")
    records = records_from_frame(parse_score_text(text), owner_id)
    result['rows'] = len(records)
    logger.info(f"  Parsed {len(records)} rows")

    # Step 2: Validate
    logger.info("Validating scores...")
    warnings = validate_scores(records)
    result['warnings'] = warnings
    if warnings:
        for w in warnings:
            logger.warning(f"  Warning: {w}")
    else:
        logger.info("  All validations passed")

    if dry_run:
        logger.info("[DRY RUN] Validation complete. No data was saved.")
        result['records'] = records
        result['success'] = True
        return result

    # Step 3: Store
    logger.info(f"Storing {len(records)} scores for {owner_id}...")
    result['records'] = [store.insert_score(record) for record in records]

    result['success'] = True
    logger.info(f"Import complete for {owner_id}")
    return result


def read_pasted_table(lines) -> str:
    """
    Collect pasted lines until two consecutive blank lines or end of input.

    Single blank lines inside the table are kept; the terminating pair is not.
    """
    collected = []
    for line in lines:
        if line == "" and collected and collected[-1] == "":
            collected.pop()
            break
        collected.append(line)
    return "\n".join(collected)


def _stdin_lines():
    try:
        while True:
            yield input()
    except EOFError:
        return


def main(store: ScoreStore | None = None):
    """Interactive import: validate the pasted table, then store it after confirmation."""
    store = store or CsvScoreStore()

    owner_id = input("User id: ").strip()
    print("Paste the score table, then press Enter on two empty lines:")
    text = read_pasted_table(_stdin_lines())

    if not text.strip():
        print("No input received.")
        sys.exit(1)

    try:
        preview = ingest_score_text(text, store, owner_id, dry_run=True)
        target = getattr(store, 'path', 'the store')
        answer = input(f"Import {preview['rows']} scores for {owner_id} into {target}? [y/N]: ")
        if answer.strip().lower() != 'y':
            print("Import cancelled.")
            return

        result = ingest_score_text(text, store, owner_id)
    except (IngestionError, ValueError) as e:
        # ValueError comes from the input size check
        print(f"Import failed: {e}")
        sys.exit(1)

    print(f"Imported {len(result['records'])} scores ({len(result['warnings'])} warnings)")


if __name__ == "__main__":
    main()
