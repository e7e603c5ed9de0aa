"""
Ratings recalculation service.

One recalculation run:
1. Load the season's ratings (seeding them from KenPom if there are none;
   a reseed retires the adjustments made against the old ratings)
2. Pull completed games from ESPN and drop the ones already processed
3. Resolve each game's teams to rating keys and find its closing line
   (cached line first, otherwise the historical odds board a few minutes
   before tip-off)
4. Feed the games, oldest first, through the adjustment processor,
   committing each game's adjustment and both ratings on their own
5. Write a matching log row per game and an append-only snapshot

All odds are fetched before a game is processed, so the rating arithmetic
itself never waits on the network.
"""
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from powerratings.core.config import settings
from powerratings.core.exceptions import RatingsNotInitializedError, TeamNotFoundError
from powerratings.core.logging import get_logger, new_run_id
from powerratings.core import metrics
from powerratings.repositories import (
    ClosingLineRepository,
    GameAdjustmentRepository,
    MatchingLogRepository,
    SnapshotRepository,
    TeamOverrideRepository,
    TeamRatingRepository,
)
from powerratings.services.ratings.adjustment_processor import RatingAdjustmentProcessor, sort_games
from powerratings.services.ratings.closing_line import ClosingLineResolver
from powerratings.services.ratings.constants import REGIONS_FOR_SOURCE
from powerratings.services.ratings.projection import project_spread
from powerratings.services.ratings.team_reconciler import OverrideTable, TeamNameReconciler, resolve_canonical
from powerratings.services.ratings.types import (
    ClosingLineResult,
    ClosingLineSource,
    CompletedGame,
    MatchStatus,
    ObservedGame,
    ProjectionResult,
    Provider,
    RecalculationResult,
    TeamRating,
)
from powerratings.utils.cache import utc_now
from powerratings.utils.timezone import ensure_utc, to_db, to_iso_z

logger = get_logger(__name__)


class RatingsService:
    """
    Example:
        service = RatingsService(db, odds_service, kenpom_service, espn_service)
        result = await service.recalculate(season=2026, max_games=100)
    """

    def __init__(
        self,
        db: Session,
        odds_service=None,
        kenpom_service=None,
        schedule_service=None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.odds_service = odds_service
        self.kenpom_service = kenpom_service
        self.schedule_service = schedule_service
        self._clock = clock

        self.ratings = TeamRatingRepository(db)
        self.adjustments = GameAdjustmentRepository(db)
        self.snapshots = SnapshotRepository(db)
        self.overrides = TeamOverrideRepository(db)
        self.closing_lines = ClosingLineRepository(db)
        self.matching_logs = MatchingLogRepository(db)

    # ========================================================================
    # Reads
    # ========================================================================

    def get_current(self, season: int, adjustment_limit: int = 50) -> Dict:
        """Current ratings, recent adjustments and the latest snapshot's metadata."""
        ratings = [self.ratings.to_domain(r) for r in self.ratings.find_by_season(season)]
        if not ratings:
            raise RatingsNotInitializedError(season)

        latest = self.snapshots.latest(season)
        adjustments = self.adjustments.find_by_season(season, limit=adjustment_limit)
        return {
            "season": season,
            "team_count": len(ratings),
            "ratings": [r.to_dict() for r in ratings],
            "adjustments": [
                {**self.adjustments.to_domain(a).to_dict(), "opening_spread": a.opening_spread}
                for a in adjustments
            ],
            "snapshot": {
                "id": latest.id,
                "as_of_date": latest.as_of_date.isoformat(),
                "hca": latest.hca,
                "closing_source": latest.closing_source,
                "games_processed": latest.games_processed,
            } if latest else None,
        }

    def list_snapshots(self, season: int, limit: int = 20) -> List[Dict]:
        return [
            {
                "id": s.id,
                "as_of_date": s.as_of_date.isoformat(),
                "hca": s.hca,
                "closing_source": s.closing_source,
                "games_processed": s.games_processed,
                "team_count": len(s.ratings or []),
            }
            for s in self.snapshots.list_recent(season, limit)
        ]

    def get_projection(
        self,
        home_team: str,
        away_team: str,
        season: int,
        is_neutral_site: bool = False,
        hca: Optional[float] = None,
    ) -> ProjectionResult:
        """Projected home spread for a matchup using current ratings."""
        ratings = self.ratings.load_season(season)
        if not ratings:
            raise RatingsNotInitializedError(season)

        overrides = OverrideTable.from_records(self.overrides.find_all_ordered())
        home_key = resolve_canonical(home_team, ratings.keys(), overrides)
        if home_key is None:
            raise TeamNotFoundError(home_team)
        away_key = resolve_canonical(away_team, ratings.keys(), overrides)
        if away_key is None:
            raise TeamNotFoundError(away_team)

        hca = settings.RATINGS_HCA if hca is None else hca
        home_rating = ratings[home_key].rating
        away_rating = ratings[away_key].rating
        return ProjectionResult(
            home_team=home_key,
            away_team=away_key,
            home_rating=home_rating,
            away_rating=away_rating,
            hca=hca,
            is_neutral_site=is_neutral_site,
            projected_spread=project_spread(home_rating, away_rating, hca, is_neutral_site),
        )

    # ========================================================================
    # Seeding
    # ========================================================================

    async def initialize_season(self, season: int, seed_date: Optional[date] = None) -> Dict[str, TeamRating]:
        """
        Replace the season's ratings with the seed provider's ratings.

        Raises:
            SeedProviderError: the provider returned nothing usable
        """
        seed_date = seed_date or date.fromisoformat(settings.RATINGS_SEED_DATE)
        seeds = await self.kenpom_service.get_archive_ratings(seed_date)

        processor = RatingAdjustmentProcessor(hca=settings.RATINGS_HCA, clock=self._clock)
        ratings = processor.initialize_ratings(seeds)
        self.ratings.replace_season(season, ratings)
        self.ratings.save()
        logger.info(f"Seeded season {season} with {len(ratings)} teams from ratings of {seed_date}")
        return ratings

    # ========================================================================
    # Recalculation
    # ========================================================================

    async def recalculate(
        self,
        season: Optional[int] = None,
        hca: Optional[float] = None,
        closing_source: Optional[ClosingLineSource] = None,
        damping_factor: Optional[float] = None,
        max_games: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        force_refresh: bool = False,
    ) -> RecalculationResult:
        season = season or settings.RATINGS_SEASON
        hca = settings.RATINGS_HCA if hca is None else hca
        closing_source = ClosingLineSource(closing_source or settings.RATINGS_CLOSING_SOURCE)
        damping_factor = settings.RATINGS_DAMPING_FACTOR if damping_factor is None else damping_factor
        max_games = max_games or settings.RATINGS_MAX_GAMES

        result = RecalculationResult(run_id=new_run_id(), season=season)
        logger.info(
            f"Recalculating season {season} (run {result.run_id}): hca={hca}, "
            f"closing_source={closing_source.value}, damping={damping_factor}"
        )

        ratings = {} if force_refresh else self.ratings.load_season(season)
        carried_openings: Dict[str, float] = {}
        if not ratings:
            ratings = await self.initialize_season(season)
            carried_openings = self._supersede_adjustments(season)
        processed_ids = self.adjustments.processed_game_ids(season)
        earlier = self.adjustments.current_adjustments(season)

        start = start_date or date.fromisoformat(settings.RATINGS_SEASON_START)
        end = end_date or (self._clock().date() - timedelta(days=1))
        completed = await self.schedule_service.get_completed_games(start, end)
        pending = [g for g in completed if g.game_id not in processed_ids][:max_games]
        result.games_found = len(pending)
        logger.info(f"{len(completed)} completed games, {len(pending)} not yet processed")

        overrides = OverrideTable.from_records(self.overrides.find_all_ordered())
        reconciler = TeamNameReconciler(overrides)
        resolver = ClosingLineResolver(closing_source)
        cached_lines = self.closing_lines.find_for_games(g.game_id for g in pending)

        statuses: Counter = Counter()
        logs: List[Dict] = []
        observed: List[ObservedGame] = []
        boards: Dict[str, Optional[List[dict]]] = {}

        for game in pending:
            home_key = resolve_canonical(game.home_team, ratings.keys(), overrides)
            away_key = resolve_canonical(game.away_team, ratings.keys(), overrides)
            if home_key is None or away_key is None:
                status = _not_found_status(home_key, away_key)
                statuses[status.value] += 1
                logs.append(_log_row(game, home_key, away_key, status, "team not in ratings"))
                metrics.record_game_skipped(status.value)
                continue

            cached = cached_lines.get(game.game_id)
            if cached is not None and cached.closing_spread is not None and cached.closing_source == closing_source.value:
                line, status = ClosingLineResult(
                    spread=cached.closing_spread,
                    source=ClosingLineSource(cached.closing_source),
                    bookmakers=tuple(cached.bookmakers or ()),
                ), MatchStatus.SUCCESS
            else:
                line, status = await self._fetch_closing_line(
                    game, season, reconciler, resolver, closing_source, boards, result
                )

            statuses[status.value] += 1
            if status != MatchStatus.SUCCESS:
                logs.append(_log_row(game, home_key, away_key, status, f"closing line: {status.value}"))
                metrics.record_game_skipped(status.value)
                continue

            logs.append(_log_row(game, home_key, away_key, status, None, line.spread))
            observed.append(ObservedGame(
                game_id=game.game_id,
                date=game.date,
                home_team=home_key,
                away_team=away_key,
                closing_spread=line.spread,
                closing_source=line.source,
                is_neutral_site=game.is_neutral_site,
                venue=game.venue,
                event_name=game.event_name,
            ))

        processor = RatingAdjustmentProcessor(
            hca=hca, damping_factor=damping_factor, closing_source=closing_source, clock=self._clock
        )
        applied = []
        for game in sort_games(observed):
            adjustment = processor.process_game(game, ratings)
            if adjustment is None:
                continue
            applied.append(adjustment)
            if self._persist_game(result, season, adjustment, ratings, carried_openings.get(adjustment.game_id)):
                metrics.record_game_adjusted()

        result.games_processed = len(applied)
        result.games_skipped = len(pending) - len(applied)
        result.matching_stats = dict(statuses)

        self._persist_logs(result, season, logs)

        # Every current adjustment for the season, earlier runs included
        history = sorted(earlier + applied, key=lambda a: (a.date, a.game_id))
        snapshot = processor.create_snapshot(ratings, history, season)
        try:
            record = self.snapshots.add_snapshot(snapshot)
            self.snapshots.save()
            result.snapshot_id = record.id
        except SQLAlchemyError as e:
            self.snapshots.rollback()
            result.errors.append(f"snapshot: {e}")
            logger.error(f"Failed to store ratings snapshot for run {result.run_id}: {e}")

        logger.info(
            f"Run {result.run_id}: {result.games_processed} processed, {result.games_skipped} skipped, "
            f"{result.api_calls} odds calls, {len(result.errors)} errors"
        )
        return result

    async def _fetch_closing_line(
        self,
        game: CompletedGame,
        season: int,
        reconciler: TeamNameReconciler,
        resolver: ClosingLineResolver,
        closing_source: ClosingLineSource,
        boards: Dict[str, Optional[List[dict]]],
        result: RecalculationResult,
    ) -> Tuple[ClosingLineResult, MatchStatus]:
        """Closing line from the board a few minutes before tip-off."""
        when = ensure_utc(game.date) - timedelta(minutes=settings.RATINGS_CLOSING_MINUTES_BEFORE)
        key = to_iso_z(when)
        if key not in boards:
            result.api_calls += 1
            boards[key] = await self.odds_service.get_historical_odds(
                when, regions=REGIONS_FOR_SOURCE[closing_source.value]
            )
        board = boards[key]
        if not board:
            return ClosingLineResult.unresolved(), MatchStatus.NO_ODDS

        odds_game = reconciler.find_matching_game(game.home_team, game.away_team, board, Provider.ODDS_API)
        if odds_game is None:
            return ClosingLineResult.unresolved(), MatchStatus.NO_ODDS

        line = resolver.resolve(odds_game)
        try:
            self.closing_lines.store(
                season=season,
                game_id=game.game_id,
                commence_time=game.date,
                home_team=odds_game.get("home_team") or game.home_team,
                away_team=odds_game.get("away_team") or game.away_team,
                result=line,
                odds_event_id=odds_game.get("id"),
            )
            self.closing_lines.save()
        except SQLAlchemyError as e:
            self.closing_lines.rollback()
            logger.warning(f"Could not cache closing line for game {game.game_id}: {e}")

        if not line.resolved:
            return line, MatchStatus.NO_SPREAD
        return line, MatchStatus.SUCCESS

    def _supersede_adjustments(self, season: int) -> Dict[str, float]:
        """Retire adjustments left over from before a reseed; returns their opening spreads."""
        try:
            openings = self.adjustments.supersede_season(season)
            self.adjustments.save()
        except SQLAlchemyError as e:
            self.adjustments.rollback()
            logger.error(f"Failed to retire earlier adjustments for season {season}: {e}")
            raise
        if openings:
            logger.info(f"Carrying {len(openings)} opening spreads forward after reseeding season {season}")
        return openings

    def _persist_game(
        self,
        result: RecalculationResult,
        season: int,
        adjustment,
        ratings: Dict[str, TeamRating],
        opening_spread: Optional[float] = None,
    ) -> bool:
        try:
            self.adjustments.add_adjustment(result.run_id, season, adjustment, opening_spread=opening_spread)
            self.ratings.upsert_rating(season, ratings[adjustment.home_team])
            self.ratings.upsert_rating(season, ratings[adjustment.away_team])
            self.adjustments.save()
            return True
        except SQLAlchemyError as e:
            self.adjustments.rollback()
            result.errors.append(f"{adjustment.game_id}: {e}")
            logger.error(f"Failed to store adjustment for game {adjustment.game_id}: {e}")
            return False

    def _persist_logs(self, result: RecalculationResult, season: int, logs: List[Dict]) -> None:
        try:
            self.matching_logs.create_many([{**row, "run_id": result.run_id, "season": season} for row in logs])
            self.matching_logs.save()
        except SQLAlchemyError as e:
            self.matching_logs.rollback()
            result.errors.append(f"matching logs: {e}")
            logger.error(f"Failed to store matching logs for run {result.run_id}: {e}")


def _not_found_status(home_key: Optional[str], away_key: Optional[str]) -> MatchStatus:
    if home_key is None and away_key is None:
        return MatchStatus.BOTH_NOT_FOUND
    if home_key is None:
        return MatchStatus.HOME_NOT_FOUND
    return MatchStatus.AWAY_NOT_FOUND


def _log_row(
    game: CompletedGame,
    home_key: Optional[str],
    away_key: Optional[str],
    status: MatchStatus,
    skip_reason: Optional[str],
    closing_spread: Optional[float] = None,
) -> Dict:
    return {
        "game_id": game.game_id,
        "game_date": to_db(game.date),
        "external_home": game.home_team,
        "external_away": game.away_team,
        "matched_home": home_key,
        "matched_away": away_key,
        "status": status.value,
        "skip_reason": skip_reason,
        "closing_spread": closing_spread,
    }
