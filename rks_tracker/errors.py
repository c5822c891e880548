"""
Exception hierarchy for the RKS score tracker.

Rating, storage and ingestion failures each get their own branch so callers
can decide which ones abort a request and which ones are skipped.
"""


class RksTrackerError(Exception):
    """Base exception for the score tracker."""


class InvalidRecordError(RksTrackerError):
    """A score record is outside the accepted accuracy/score/difficulty ranges."""


class StoreUnavailableError(RksTrackerError):
    """The score store could not serve a request."""


class IngestionError(RksTrackerError):
    """Custom exception for ingestion errors"""


class ValidationError(IngestionError):
    """Validation-specific errors"""
