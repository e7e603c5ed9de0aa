"""
Rating adjustment processor.

Walks completed games in the order given and nudges both teams' ratings
toward what the closing line implied:

    projected  = project_spread(home, away, hca, neutral)
    difference = closing - projected
    adjustment = difference * damping_factor
    home      -= adjustment / 2
    away      += adjustment / 2

A negative difference means the market rated the home team better than the
model did, so the home rating goes up. The gap between the two teams moves
by the full adjustment while their sum stays the same, so a batch never
changes the total of all ratings.

The processor is pure apart from mutating the ratings map it is handed:
odds are pre-fetched by the caller and the clock is injected.
"""
import re
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from powerratings.core.logging import get_logger
from powerratings.services.ratings.constants import NEUTRAL_SITE_EVENTS, NEUTRAL_SITE_KEYWORDS
from powerratings.services.ratings.projection import project_spread
from powerratings.services.ratings.types import (
    ClosingLineSource,
    GameAdjustment,
    ObservedGame,
    RatingsSnapshot,
    SeedRating,
    TeamRating,
)

logger = get_logger(__name__)

_NEUTRAL_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(k) for k in NEUTRAL_SITE_EVENTS + NEUTRAL_SITE_KEYWORDS) + r")\b",
    re.IGNORECASE,
)


def detect_neutral_site(
    flag: Optional[bool] = None,
    venue: Optional[str] = None,
    event_name: Optional[str] = None,
) -> bool:
    """
    Neutral floor when the provider says so, or when the venue or event
    name mentions a tournament, a named neutral-site event or "neutral".

    Examples:
        >>> detect_neutral_site(event_name="Maui Invitational - Semifinal")
        True
        >>> detect_neutral_site(False, venue="Cameron Indoor Stadium")
        False
    """
    if flag:
        return True
    text = " ".join(t for t in (venue, event_name) if t)
    return bool(text and _NEUTRAL_PATTERN.search(text))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RatingAdjustmentProcessor:
    """
    Apply closing-line observations to a ratings map.

    Example:
        processor = RatingAdjustmentProcessor(hca=2.5)
        adjustments = processor.process_games(games, ratings)
        snapshot = processor.create_snapshot(ratings, adjustments, season=2026)
    """

    def __init__(
        self,
        hca: float,
        damping_factor: float = 1.0,
        closing_source: ClosingLineSource = ClosingLineSource.PINNACLE,
        clock: Callable[[], datetime] = _utc_now,
    ):
        if damping_factor < 0:
            raise ValueError("damping_factor must be >= 0")
        self.hca = hca
        self.damping_factor = damping_factor
        self.closing_source = ClosingLineSource(closing_source)
        self._clock = clock

    def initialize_ratings(self, seeds: Iterable[SeedRating]) -> Dict[str, TeamRating]:
        """Fresh ratings map from seed provider tuples."""
        now = self._clock()
        return {
            seed.team_name: TeamRating(
                team_name=seed.team_name,
                rating=seed.power_rating,
                initial_rating=seed.power_rating,
                games_processed=0,
                last_updated=now,
                source_name=seed.team_name,
                conference=seed.conference,
            )
            for seed in seeds
        }

    def process_game(self, game: ObservedGame, ratings: Dict[str, TeamRating]) -> Optional[GameAdjustment]:
        """
        Apply one game. Returns None (and leaves ratings untouched) when the
        game has no closing line or either team is not rated.
        """
        if game.closing_spread is None:
            logger.debug(f"Skipping {game.away_team} @ {game.home_team}: no closing line")
            return None

        home = ratings.get(game.home_team)
        away = ratings.get(game.away_team)
        if home is None or away is None:
            logger.debug(f"Skipping {game.away_team} @ {game.home_team}: team not rated")
            return None

        neutral = detect_neutral_site(game.is_neutral_site, game.venue, game.event_name)
        home_before = home.rating
        away_before = away.rating

        projected = project_spread(home_before, away_before, self.hca, neutral)
        difference = game.closing_spread - projected
        adjustment = difference * self.damping_factor

        now = self._clock()
        home.rating = home_before - adjustment / 2
        away.rating = away_before + adjustment / 2
        for team in (home, away):
            team.games_processed += 1
            team.last_updated = now

        return GameAdjustment(
            game_id=game.game_id,
            date=game.date,
            home_team=game.home_team,
            away_team=game.away_team,
            is_neutral_site=neutral,
            home_rating_before=home_before,
            away_rating_before=away_before,
            projected_spread=projected,
            closing_spread=game.closing_spread,
            closing_source=ClosingLineSource(game.closing_source or self.closing_source),
            difference=difference,
            adjustment=adjustment,
            home_rating_after=home.rating,
            away_rating_after=away.rating,
        )

    def process_games(
        self,
        games: Sequence[ObservedGame],
        ratings: Dict[str, TeamRating],
    ) -> List[GameAdjustment]:
        """Apply games strictly in the order given. Callers sort by date first."""
        adjustments = []
        for game in games:
            result = self.process_game(game, ratings)
            if result is not None:
                adjustments.append(result)
        return adjustments

    def create_snapshot(
        self,
        ratings: Dict[str, TeamRating],
        adjustments: Sequence[GameAdjustment],
        season: int,
        as_of_date: Optional[datetime] = None,
    ) -> RatingsSnapshot:
        ordered = sorted(ratings.values(), key=lambda r: r.rating, reverse=True)
        return RatingsSnapshot(
            as_of_date=as_of_date or self._clock(),
            season=season,
            hca=self.hca,
            closing_source=self.closing_source,
            games_processed=len(adjustments),
            ratings=ordered,
            adjustments=list(adjustments),
        )


def sort_games(games: Iterable[ObservedGame]) -> List[ObservedGame]:
    """Chronological order; game_id breaks ties so the order is reproducible."""
    return sorted(games, key=lambda g: (g.date, g.game_id))


def rating_total(ratings: Dict[str, TeamRating]) -> float:
    return sum(r.rating for r in ratings.values())


def rating_changes(ratings: Dict[str, TeamRating]) -> List[Tuple[str, float]]:
    """(team, rating - initial_rating) for every team, biggest movers first."""
    changes = [(r.team_name, r.rating - r.initial_rating) for r in ratings.values()]
    return sorted(changes, key=lambda c: abs(c[1]), reverse=True)
