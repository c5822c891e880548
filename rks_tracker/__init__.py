"""
RKS Score Tracker - Core Package

This package contains the core modules for:
- RKS rating and leaderboard computation (rks_tracker.rating)
- Score import and export (rks_tracker.ingestion)
- Score storage (rks_tracker.store)
- Shared configuration and utilities
"""

from rks_tracker.config import *
