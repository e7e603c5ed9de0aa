"""
Closing (and opening) line resolution from a multi-bookmaker odds payload.

The payload is a single game in The Odds API shape:

    {
        "id": "...", "commence_time": "...",
        "home_team": "Duke Blue Devils", "away_team": "...",
        "bookmakers": [
            {"key": "pinnacle", "title": "Pinnacle", "last_update": "...",
             "markets": [{"key": "spreads", "outcomes": [
                 {"name": "Duke Blue Devils", "price": -105, "point": -3.5},
                 ...
             ]}]},
            ...
        ],
    }

Resolution is an ordered list of strategies tried until one yields a
spread: the sharp book first, then the average of the US retail books.
"""
import math
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from powerratings.core.logging import get_logger
from powerratings.services.ratings.constants import SHARP_BOOKMAKER, US_RETAIL_BOOKMAKERS
from powerratings.services.ratings.types import ClosingLineResult, ClosingLineSource
from powerratings.utils.timezone import parse_iso

logger = get_logger(__name__)

SPREADS_MARKET = "spreads"


def round_to_half(value: float) -> float:
    """
    Round to the nearest 0.5; exact halves round up.

    Examples:
        >>> round_to_half(-3.6)
        -3.5
        >>> round_to_half(-3.25)
        -3.0
    """
    return math.floor(value * 2 + 0.5) / 2


def home_spread_point(bookmaker: Dict[str, Any], home_team: str) -> Optional[float]:
    """The home team's spread point offered by one bookmaker, if any."""
    for market in bookmaker.get("markets") or []:
        if market.get("key") != SPREADS_MARKET:
            continue
        outcomes = market.get("outcomes") or []
        outcome = next((o for o in outcomes if o.get("name") == home_team), None)
        if outcome is None:
            home_lower = home_team.lower()
            outcome = next((o for o in outcomes if (o.get("name") or "").lower() == home_lower), None)
        if outcome is not None and outcome.get("point") is not None:
            return float(outcome["point"])
    return None


def _last_update(bookmakers: Iterable[Dict[str, Any]]) -> Optional[datetime]:
    stamps = [parse_iso(b.get("last_update")) for b in bookmakers]
    stamps = [s for s in stamps if s is not None]
    return max(stamps) if stamps else None


class SpreadStrategy(ABC):
    """One step in the resolution chain."""

    source: ClosingLineSource

    @abstractmethod
    def extract(self, bookmakers: Sequence[Dict[str, Any]], home_team: str) -> Optional[ClosingLineResult]:
        """Return a resolved line, or None to fall through to the next strategy."""


class SharpBookStrategy(SpreadStrategy):
    """Take the sharp book's number as-is."""

    source = ClosingLineSource.PINNACLE

    def __init__(self, bookmaker_key: str = SHARP_BOOKMAKER):
        self.bookmaker_key = bookmaker_key

    def extract(self, bookmakers, home_team):
        book = next((b for b in bookmakers if b.get("key") == self.bookmaker_key), None)
        if book is None:
            return None
        point = home_spread_point(book, home_team)
        if point is None:
            return None
        return ClosingLineResult(
            spread=point,
            source=self.source,
            bookmakers=(book.get("title") or self.bookmaker_key,),
            timestamp=parse_iso(book.get("last_update")),
        )


class RetailAverageStrategy(SpreadStrategy):
    """Average the home spread across the US retail books, rounded to 0.5."""

    source = ClosingLineSource.US_AVERAGE

    def __init__(self, bookmaker_keys: Sequence[str] = US_RETAIL_BOOKMAKERS):
        self.bookmaker_keys = tuple(bookmaker_keys)

    def extract(self, bookmakers, home_team):
        by_key = {b.get("key"): b for b in bookmakers}
        points: List[float] = []
        contributors = []
        for key in self.bookmaker_keys:
            book = by_key.get(key)
            if book is None:
                continue
            point = home_spread_point(book, home_team)
            if point is not None:
                points.append(point)
                contributors.append(book)
        if not points:
            return None
        return ClosingLineResult(
            spread=round_to_half(sum(points) / len(points)),
            source=self.source,
            bookmakers=tuple(b.get("title") or b.get("key") for b in contributors),
            timestamp=_last_update(contributors),
        )


class ClosingLineResolver:
    """
    Resolve a home-perspective spread from one game's odds.

    ``closing_source="pinnacle"`` tries the sharp book then the retail
    average; ``closing_source="us_average"`` uses the retail average only.

    Example:
        resolver = ClosingLineResolver()
        result = resolver.resolve(odds_game)
        if result.resolved:
            print(result.spread, result.source)
    """

    def __init__(
        self,
        closing_source: ClosingLineSource = ClosingLineSource.PINNACLE,
        sharp_bookmaker: str = SHARP_BOOKMAKER,
        retail_bookmakers: Sequence[str] = US_RETAIL_BOOKMAKERS,
    ):
        self.closing_source = ClosingLineSource(closing_source)
        retail = RetailAverageStrategy(retail_bookmakers)
        if self.closing_source == ClosingLineSource.PINNACLE:
            self.strategies: List[SpreadStrategy] = [SharpBookStrategy(sharp_bookmaker), retail]
        else:
            self.strategies = [retail]

    def resolve(self, odds_game: Dict[str, Any], home_team: Optional[str] = None) -> ClosingLineResult:
        home_team = home_team or odds_game.get("home_team")
        bookmakers = odds_game.get("bookmakers") or []
        if not home_team or not bookmakers:
            return ClosingLineResult.unresolved()

        for strategy in self.strategies:
            result = strategy.extract(bookmakers, home_team)
            if result is not None:
                return result

        logger.debug(f"No spread for {home_team} among {len(bookmakers)} bookmakers")
        return ClosingLineResult.unresolved()
