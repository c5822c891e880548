"""
Score Ingestion

Modules:
- paste_mode: Bulk import from a pasted score table
- json_io: JSON backup export and import
"""


def __getattr__(name):
    """Lazy imports to avoid RuntimeWarning when running modules directly."""
    if name == "ingest_score_text":
        from rks_tracker.ingestion.paste_mode import ingest_score_text
        return ingest_score_text
    if name in ("export_scores", "import_scores"):
        from rks_tracker.ingestion import json_io
        return getattr(json_io, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
