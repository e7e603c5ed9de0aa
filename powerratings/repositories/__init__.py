"""
Repository layer.

Usage:
    from powerratings.repositories import TeamRatingRepository

    repo = TeamRatingRepository(db)
    ratings = repo.load_season(2026)
"""
from powerratings.repositories.base import BaseRepository
from powerratings.repositories.rating_repository import TeamRatingRepository
from powerratings.repositories.adjustment_repository import GameAdjustmentRepository
from powerratings.repositories.snapshot_repository import SnapshotRepository
from powerratings.repositories.override_repository import TeamOverrideRepository
from powerratings.repositories.closing_line_repository import ClosingLineRepository
from powerratings.repositories.matching_log_repository import MatchingLogRepository

__all__ = [
    "BaseRepository",
    "TeamRatingRepository",
    "GameAdjustmentRepository",
    "SnapshotRepository",
    "TeamOverrideRepository",
    "ClosingLineRepository",
    "MatchingLogRepository",
]
