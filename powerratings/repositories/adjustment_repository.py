"""
Game adjustment repository.

Adjustment rows are written once per (game, run). The only fields that are
ever written afterwards are ``opening_spread``, through a partial update,
and ``superseded``, when the season is reseeded.

Every read here except ``supersede_season`` sees current rows only: the
adjustments behind the ratings as they stand now.
"""
from datetime import datetime
from typing import Dict, List, Optional, Set

from sqlalchemy import func

from powerratings.models import GameAdjustmentRecord
from powerratings.repositories.base import BaseRepository
from powerratings.services.ratings.types import ClosingLineSource, GameAdjustment
from powerratings.utils.timezone import ensure_utc, to_db

CURRENT = GameAdjustmentRecord.superseded.is_(False)


class GameAdjustmentRepository(BaseRepository[GameAdjustmentRecord]):
    """Repository for per-game adjustment audit rows."""

    def __init__(self, db):
        super().__init__(GameAdjustmentRecord, db)

    @staticmethod
    def to_domain(record: GameAdjustmentRecord) -> GameAdjustment:
        return GameAdjustment(
            game_id=record.game_id,
            date=ensure_utc(record.game_date),
            home_team=record.home_team,
            away_team=record.away_team,
            is_neutral_site=record.is_neutral_site,
            home_rating_before=record.home_rating_before,
            away_rating_before=record.away_rating_before,
            projected_spread=record.projected_spread,
            closing_spread=record.closing_spread,
            closing_source=ClosingLineSource(record.closing_source),
            difference=record.difference,
            adjustment=record.adjustment,
            home_rating_after=record.home_rating_after,
            away_rating_after=record.away_rating_after,
        )

    def add_adjustment(
        self,
        run_id: str,
        season: int,
        adjustment: GameAdjustment,
        opening_spread: Optional[float] = None,
    ) -> GameAdjustmentRecord:
        """Stage one adjustment row. Does not commit."""
        return self.create(
            run_id=run_id,
            season=season,
            game_id=adjustment.game_id,
            game_date=to_db(adjustment.date),
            home_team=adjustment.home_team,
            away_team=adjustment.away_team,
            is_neutral_site=adjustment.is_neutral_site,
            home_rating_before=adjustment.home_rating_before,
            away_rating_before=adjustment.away_rating_before,
            projected_spread=adjustment.projected_spread,
            closing_spread=adjustment.closing_spread,
            closing_source=adjustment.closing_source.value,
            difference=adjustment.difference,
            adjustment=adjustment.adjustment,
            home_rating_after=adjustment.home_rating_after,
            away_rating_after=adjustment.away_rating_after,
            opening_spread=opening_spread,
            superseded=False,
        )

    def supersede_season(self, season: int) -> Dict[str, float]:
        """
        Retire the season's current rows after a reseed. Does not commit.

        Returns:
            game_id -> opening spread for retired rows that had one, so the
            replacement rows need not be backfilled again
        """
        query = self.query().filter(GameAdjustmentRecord.season == season, CURRENT)
        openings = {
            r.game_id: r.opening_spread
            for r in query.filter(GameAdjustmentRecord.opening_spread.isnot(None)).all()
        }
        query.update({"superseded": True}, synchronize_session="fetch")
        return openings

    def processed_game_ids(self, season: int) -> Set[str]:
        """IDs of every game folded into the season's current ratings."""
        rows = self.db.query(GameAdjustmentRecord.game_id).filter(
            GameAdjustmentRecord.season == season, CURRENT
        ).distinct().all()
        return {row[0] for row in rows}

    def find_by_season(self, season: int, limit: Optional[int] = None) -> List[GameAdjustmentRecord]:
        """Most recent games first."""
        query = self.query().filter(
            GameAdjustmentRecord.season == season, CURRENT
        ).order_by(GameAdjustmentRecord.game_date.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def current_adjustments(self, season: int) -> List[GameAdjustment]:
        """Every adjustment behind the current ratings, in processing order."""
        records = self.query().filter(
            GameAdjustmentRecord.season == season, CURRENT
        ).order_by(GameAdjustmentRecord.game_date, GameAdjustmentRecord.game_id).all()
        return [self.to_domain(r) for r in records]

    # ========================================================================
    # Opening-line backfill
    # ========================================================================

    def _missing_opening_query(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        season: Optional[int] = None,
    ):
        query = self.query().filter(GameAdjustmentRecord.opening_spread.is_(None), CURRENT)
        if season is not None:
            query = query.filter(GameAdjustmentRecord.season == season)
        if start is not None:
            query = query.filter(GameAdjustmentRecord.game_date >= to_db(start))
        if end is not None:
            query = query.filter(GameAdjustmentRecord.game_date <= to_db(end))
        return query

    def find_missing_opening(
        self,
        limit: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        season: Optional[int] = None,
    ) -> List[GameAdjustmentRecord]:
        """Oldest-first batch of games that still lack an opening spread."""
        return self._missing_opening_query(start, end, season).order_by(
            GameAdjustmentRecord.game_date
        ).limit(limit).all()

    def count_missing_opening(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        season: Optional[int] = None,
    ) -> int:
        return self._missing_opening_query(start, end, season).count()

    def count_with_opening(self, season: Optional[int] = None) -> int:
        criteria = [GameAdjustmentRecord.opening_spread.isnot(None), CURRENT]
        if season is not None:
            criteria.append(GameAdjustmentRecord.season == season)
        return self.count(*criteria)

    def missing_opening_by_date(self, season: Optional[int] = None) -> Dict[str, int]:
        """Count of games without an opening spread, grouped by game day."""
        day = func.date(GameAdjustmentRecord.game_date)
        query = self.db.query(day, func.count(GameAdjustmentRecord.id)).filter(
            GameAdjustmentRecord.opening_spread.is_(None), CURRENT
        )
        if season is not None:
            query = query.filter(GameAdjustmentRecord.season == season)
        rows = query.group_by(day).order_by(day).all()
        return {str(d): n for d, n in rows}

    def set_opening_spread(self, id: str, opening_spread: float) -> bool:
        """Partial update of the opening spread only. Does not commit."""
        return self.update_fields(id, opening_spread=opening_spread)
