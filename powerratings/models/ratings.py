"""
Persistence models for the ratings engine.

Tables are keyed by season. Ratings and overrides are mutable; adjustments
are written once per (game, run) and only ever gain an opening spread
afterwards; snapshots are append-only.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    # Timestamps are stored as naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# RATINGS
# =============================================================================

class TeamRatingRecord(Base):
    """Current rating for one team in one season."""
    __tablename__ = "team_ratings"

    id = Column(String(36), primary_key=True, default=_uuid)
    season = Column(Integer, nullable=False, index=True)
    team_name = Column(String(100), nullable=False)  # canonical (seed provider) name
    source_name = Column(String(100), nullable=True)
    alternate_names = Column(JSON, nullable=True)  # {"odds_api": "...", "espn": "..."}
    conference = Column(String(20), nullable=True)

    rating = Column(Float, nullable=False)
    initial_rating = Column(Float, nullable=False)
    games_processed = Column(Integer, nullable=False, default=0)

    last_updated = Column(DateTime, nullable=False, default=_utcnow)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("season", "team_name", name="uq_team_ratings_season_team"),
    )


class GameAdjustmentRecord(Base):
    """
    Audit row for one processed game.

    Every field of the in-memory adjustment is persisted; ``opening_spread``
    starts empty and is filled in later by the opening-line backfill.

    Rows are never deleted. When a season is reseeded the earlier rows are
    marked ``superseded``: they stay as history but no longer describe the
    current ratings.
    """
    __tablename__ = "game_adjustments"

    id = Column(String(36), primary_key=True, default=_uuid)
    run_id = Column(String(36), nullable=False, index=True)
    season = Column(Integer, nullable=False, index=True)
    game_id = Column(String(50), nullable=False, index=True)
    game_date = Column(DateTime, nullable=False, index=True)

    home_team = Column(String(100), nullable=False)
    away_team = Column(String(100), nullable=False)
    is_neutral_site = Column(Boolean, nullable=False, default=False)

    home_rating_before = Column(Float, nullable=False)
    away_rating_before = Column(Float, nullable=False)
    projected_spread = Column(Float, nullable=False)
    closing_spread = Column(Float, nullable=False)
    closing_source = Column(String(20), nullable=False)
    difference = Column(Float, nullable=False)
    adjustment = Column(Float, nullable=False)
    home_rating_after = Column(Float, nullable=False)
    away_rating_after = Column(Float, nullable=False)

    opening_spread = Column(Float, nullable=True)
    superseded = Column(Boolean, nullable=False, default=False, index=True)

    processed_at = Column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("game_id", "run_id", name="uq_game_adjustments_game_run"),
        Index("ix_game_adjustments_missing_opening", "season", "opening_spread", "game_date"),
    )


class RatingsSnapshotRecord(Base):
    """Point-in-time copy of all ratings. Never updated after insert."""
    __tablename__ = "ratings_snapshots"

    id = Column(String(36), primary_key=True, default=_uuid)
    season = Column(Integer, nullable=False, index=True)
    as_of_date = Column(DateTime, nullable=False, index=True)
    hca = Column(Float, nullable=False)
    closing_source = Column(String(20), nullable=False)
    games_processed = Column(Integer, nullable=False, default=0)
    ratings = Column(JSON, nullable=False)
    adjustments = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)


# =============================================================================
# NAME RECONCILIATION
# =============================================================================

class TeamOverride(Base):
    """
    Manual binding of an external team spelling to a canonical team.

    ``source_name`` is unique: each external spelling maps to at most one
    canonical team. The provider columns hold the spelling each provider uses
    for the canonical team.
    """
    __tablename__ = "team_overrides"

    id = Column(String(36), primary_key=True, default=_uuid)
    source_name = Column(String(100), nullable=False, unique=True)
    canonical_name = Column(String(100), nullable=False, index=True)
    espn_name = Column(String(100), nullable=True, index=True)
    odds_api_name = Column(String(100), nullable=True, index=True)
    sbr_name = Column(String(100), nullable=True, index=True)
    source = Column(String(30), nullable=False, default="manual")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


# =============================================================================
# CACHES AND AUDIT
# =============================================================================

class ClosingLineRecord(Base):
    """Cached closing line for a completed game."""
    __tablename__ = "closing_lines"

    id = Column(String(36), primary_key=True, default=_uuid)
    game_id = Column(String(50), nullable=False, unique=True)
    season = Column(Integer, nullable=False, index=True)
    odds_event_id = Column(String(100), nullable=True)
    commence_time = Column(DateTime, nullable=False)
    home_team = Column(String(100), nullable=False)
    away_team = Column(String(100), nullable=False)
    closing_spread = Column(Float, nullable=True)
    closing_source = Column(String(20), nullable=True)
    bookmakers = Column(JSON, nullable=True)
    fetched_at = Column(DateTime, nullable=False, default=_utcnow)


class MatchingLog(Base):
    """Per-game outcome of a recalculation run (matched, skipped and why)."""
    __tablename__ = "matching_logs"

    id = Column(String(36), primary_key=True, default=_uuid)
    run_id = Column(String(36), nullable=False, index=True)
    season = Column(Integer, nullable=False, index=True)
    game_id = Column(String(50), nullable=False, index=True)
    game_date = Column(DateTime, nullable=False)
    external_home = Column(String(100), nullable=False)
    external_away = Column(String(100), nullable=False)
    matched_home = Column(String(100), nullable=True)
    matched_away = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, index=True)
    skip_reason = Column(Text, nullable=True)
    closing_spread = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
