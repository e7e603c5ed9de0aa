"""
Opening-line backfill.

For adjustment rows that have no ``opening_spread`` yet, look back through
historical odds boards before tip-off (48h, 36h, 24h, then 12h) and take
the first spread found. The earliest available quote is treated as the
opening line.

Boards are cached per invocation by the hour they fall in, so games tipping
off in the same hour share one historical request. Games are handled one at
a time with a short pause in between; each game's update is committed on its
own, so an interrupted run keeps what it already wrote.
"""
import asyncio
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from powerratings.core.logging import get_logger
from powerratings.core import metrics
from powerratings.models import GameAdjustmentRecord
from powerratings.repositories import GameAdjustmentRepository, TeamOverrideRepository
from powerratings.services.ratings.closing_line import ClosingLineResolver
from powerratings.services.ratings.team_reconciler import OverrideTable, TeamNameReconciler
from powerratings.services.ratings.types import BackfillResult, ClosingLineSource, Provider
from powerratings.utils.timezone import ensure_utc, hour_key, truncate_to_hour

logger = get_logger(__name__)

DEFAULT_LOOKBACK_HOURS = (48, 36, 24, 12)


class OpeningLineBackfiller:
    """
    Fill in missing opening spreads from historical odds.

    Example:
        backfiller = OpeningLineBackfiller(db, get_odds_service())
        result = await backfiller.run()
        print(result.updated, result.not_found, result.remaining)
    """

    def __init__(
        self,
        db: Session,
        odds_service,
        resolver: Optional[ClosingLineResolver] = None,
        batch_size: int = 50,
        lookback_hours: Sequence[int] = DEFAULT_LOOKBACK_HOURS,
        delay_seconds: float = 0.05,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.db = db
        self.odds_service = odds_service
        self.resolver = resolver or ClosingLineResolver(ClosingLineSource.PINNACLE)
        self.batch_size = batch_size
        # Longest lookback first
        self.lookback_hours = sorted(lookback_hours, reverse=True)
        self.delay_seconds = delay_seconds
        self._sleep = sleep
        self.adjustments = GameAdjustmentRepository(db)
        self.overrides = TeamOverrideRepository(db)

    async def run(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        season: Optional[int] = None,
    ) -> BackfillResult:
        """Process one batch of games missing an opening spread."""
        result = BackfillResult()

        # Overrides can change between runs; always read them fresh
        reconciler = TeamNameReconciler(OverrideTable.from_records(self.overrides.find_all_ordered()))
        games = self.adjustments.find_missing_opening(self.batch_size, start_date, end_date, season)
        logger.info(f"Backfilling opening lines for {len(games)} games ({len(reconciler.overrides)} overrides loaded)")

        boards: Dict[str, List[dict]] = {}
        for index, game in enumerate(games):
            if index > 0 and self.delay_seconds > 0:
                await self._sleep(self.delay_seconds)

            spread = await self._find_opening_spread(game, reconciler, boards, result)
            result.processed += 1

            if spread is None:
                result.not_found += 1
                metrics.record_backfill_outcome("not_found")
                logger.debug(f"No opening line for {game.away_team} @ {game.home_team} ({game.game_id})")
                continue

            try:
                self.adjustments.set_opening_spread(game.id, spread)
                self.adjustments.save()
            except SQLAlchemyError as e:
                self.adjustments.rollback()
                result.errors.append(f"{game.game_id}: {e}")
                metrics.record_backfill_outcome("error")
                logger.error(f"Failed to store opening spread for game {game.game_id}: {e}")
                continue

            result.updated += 1
            metrics.record_backfill_outcome("updated")

        result.remaining = self.adjustments.count_missing_opening(start_date, end_date, season)
        logger.info(
            f"Opening-line backfill complete: {result.updated}/{result.processed} updated, "
            f"{result.not_found} not found, {len(result.errors)} errors, "
            f"{result.api_calls} API calls, {result.remaining} remaining"
        )
        return result

    async def _find_opening_spread(
        self,
        game: GameAdjustmentRecord,
        reconciler: TeamNameReconciler,
        boards: Dict[str, List[dict]],
        result: BackfillResult,
    ) -> Optional[float]:
        kickoff = ensure_utc(game.game_date)
        for hours in self.lookback_hours:
            board = await self._get_board(kickoff - timedelta(hours=hours), boards, result)
            if not board:
                continue

            odds_game = reconciler.find_matching_game(game.home_team, game.away_team, board, Provider.ODDS_API)
            if odds_game is None:
                continue

            line = self.resolver.resolve(odds_game)
            if line.resolved:
                logger.info(
                    f"Opening line for {game.away_team} @ {game.home_team} at -{hours}h: "
                    f"{line.spread} ({line.source.value})"
                )
                return line.spread
        return None

    async def _get_board(
        self,
        when: datetime,
        boards: Dict[str, List[dict]],
        result: BackfillResult,
    ) -> Optional[List[dict]]:
        key = hour_key(when)
        if key in boards:
            return boards[key]

        result.api_calls += 1
        board = await self.odds_service.get_historical_odds(truncate_to_hour(when), regions="us,eu")
        if board is None:
            # Failed request: not cached, so a later game may retry this hour
            return None
        boards[key] = board
        return board

    def status(self, season: Optional[int] = None) -> Dict[str, int]:
        with_opening = self.adjustments.count_with_opening(season)
        missing = self.adjustments.count_missing_opening(season=season)
        return {
            "total_games": with_opening + missing,
            "with_opening_spread": with_opening,
            "missing_opening_spread": missing,
        }

    def pending_by_date(self, season: Optional[int] = None) -> Dict[str, int]:
        return self.adjustments.missing_opening_by_date(season)
