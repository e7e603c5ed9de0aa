"""
Database models.

Usage:
    from powerratings.models import TeamRatingRecord, GameAdjustmentRecord
"""
from powerratings.models.ratings import (
    Base,
    TeamRatingRecord,
    GameAdjustmentRecord,
    RatingsSnapshotRecord,
    TeamOverride,
    ClosingLineRecord,
    MatchingLog,
)

__all__ = [
    "Base",
    "TeamRatingRecord",
    "GameAdjustmentRecord",
    "RatingsSnapshotRecord",
    "TeamOverride",
    "ClosingLineRecord",
    "MatchingLog",
]
