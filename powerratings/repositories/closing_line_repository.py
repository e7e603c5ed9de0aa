"""
Closing line cache repository.

Closing lines of completed games never change, so a resolved line is
stored once and reused by later recalculation runs.
"""
from typing import Dict, Iterable

from powerratings.models import ClosingLineRecord
from powerratings.repositories.base import BaseRepository
from powerratings.services.ratings.types import ClosingLineResult
from powerratings.utils.timezone import to_db


class ClosingLineRepository(BaseRepository[ClosingLineRecord]):

    def __init__(self, db):
        super().__init__(ClosingLineRecord, db)

    def find_for_games(self, game_ids: Iterable[str]) -> Dict[str, ClosingLineRecord]:
        ids = list(game_ids)
        if not ids:
            return {}
        return {r.game_id: r for r in self.where(ClosingLineRecord.game_id.in_(ids))}

    def store(
        self,
        season: int,
        game_id: str,
        commence_time,
        home_team: str,
        away_team: str,
        result: ClosingLineResult,
        odds_event_id: str = None,
    ) -> ClosingLineRecord:
        """Insert or refresh the cached line for a game. Does not commit."""
        fields = dict(
            season=season,
            odds_event_id=odds_event_id,
            commence_time=to_db(commence_time),
            home_team=home_team,
            away_team=away_team,
            closing_spread=result.spread,
            closing_source=result.source.value if result.source else None,
            bookmakers=list(result.bookmakers),
        )
        record = self.where_first(ClosingLineRecord.game_id == game_id)
        if record is None:
            return self.create(game_id=game_id, **fields)
        for key, value in fields.items():
            setattr(record, key, value)
        return record
