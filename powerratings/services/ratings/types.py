"""
Domain objects for the ratings engine.

These are plain dataclasses; the SQLAlchemy rows in ``powerratings.models``
are converted to and from them at the repository boundary so that the
engine itself never touches a session.
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ClosingLineSource(str, Enum):
    """Where a closing (or opening) spread came from."""
    PINNACLE = "pinnacle"
    US_AVERAGE = "us_average"


class Provider(str, Enum):
    """External sources whose team spellings need reconciling."""
    ODDS_API = "odds_api"
    ESPN = "espn"
    SBR = "sbr"


class MatchStatus(str, Enum):
    """Outcome of matching one completed game during recalculation."""
    SUCCESS = "success"
    NO_ODDS = "no_odds"
    NO_SPREAD = "no_spread"
    HOME_NOT_FOUND = "home_not_found"
    AWAY_NOT_FOUND = "away_not_found"
    BOTH_NOT_FOUND = "both_not_found"
    ERROR = "error"


@dataclass
class TeamRating:
    """
    A team's current power rating.

    ``rating`` is points better than an average team on a neutral floor.
    ``initial_rating`` is the seed and never changes once set.
    """
    team_name: str
    rating: float
    initial_rating: float
    games_processed: int = 0
    last_updated: Optional[datetime] = None
    source_name: Optional[str] = None
    conference: Optional[str] = None
    alternate_names: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_updated"] = self.last_updated.isoformat() if self.last_updated else None
        return data


@dataclass(frozen=True)
class GameAdjustment:
    """Immutable record of how one game moved two ratings."""
    game_id: str
    date: datetime
    home_team: str
    away_team: str
    is_neutral_site: bool
    home_rating_before: float
    away_rating_before: float
    projected_spread: float
    closing_spread: float
    closing_source: ClosingLineSource
    difference: float
    adjustment: float
    home_rating_after: float
    away_rating_after: float

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        data["closing_source"] = self.closing_source.value
        return data


@dataclass(frozen=True)
class ClosingLineResult:
    """A home-perspective spread and the books it was derived from."""
    spread: Optional[float]
    source: Optional[ClosingLineSource] = None
    bookmakers: Tuple[str, ...] = ()
    timestamp: Optional[datetime] = None

    @classmethod
    def unresolved(cls, timestamp: Optional[datetime] = None) -> "ClosingLineResult":
        return cls(spread=None, timestamp=timestamp)

    @property
    def resolved(self) -> bool:
        return self.spread is not None


@dataclass(frozen=True)
class SeedRating:
    """One team's rating as published by the seed provider."""
    team_name: str
    power_rating: float
    conference: Optional[str] = None


@dataclass
class CompletedGame:
    """A final game as reported by the schedule provider (provider spellings)."""
    game_id: str
    date: datetime
    home_team: str
    away_team: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    is_neutral_site: bool = False
    venue: Optional[str] = None
    event_name: Optional[str] = None


@dataclass
class ObservedGame:
    """
    A completed game ready for the adjustment processor.

    Team names are canonical rating keys. ``closing_spread`` is None when no
    market line could be found; such games are skipped. ``is_neutral_site``
    of None means "unknown": the processor falls back to keyword detection.
    """
    game_id: str
    date: datetime
    home_team: str
    away_team: str
    closing_spread: Optional[float]
    closing_source: Optional[ClosingLineSource] = None
    is_neutral_site: Optional[bool] = None
    venue: Optional[str] = None
    event_name: Optional[str] = None


@dataclass
class RatingsSnapshot:
    """Ratings at a point in time plus the adjustments that produced them."""
    as_of_date: datetime
    season: int
    hca: float
    closing_source: ClosingLineSource
    games_processed: int
    ratings: List[TeamRating]
    adjustments: List[GameAdjustment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "as_of_date": self.as_of_date.isoformat(),
            "season": self.season,
            "hca": self.hca,
            "closing_source": self.closing_source.value,
            "games_processed": self.games_processed,
            "ratings": [r.to_dict() for r in self.ratings],
            "adjustments": [a.to_dict() for a in self.adjustments],
        }


@dataclass(frozen=True)
class ProjectionResult:
    home_team: str
    away_team: str
    home_rating: float
    away_rating: float
    hca: float
    is_neutral_site: bool
    projected_spread: float


@dataclass
class BackfillResult:
    """Counts reported by one opening-line backfill invocation."""
    processed: int = 0
    updated: int = 0
    not_found: int = 0
    errors: List[str] = field(default_factory=list)
    api_calls: int = 0
    remaining: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RecalculationResult:
    """Counts reported by one ratings recalculation run."""
    run_id: str
    season: int
    games_found: int = 0
    games_processed: int = 0
    games_skipped: int = 0
    api_calls: int = 0
    matching_stats: Dict[str, int] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    snapshot_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
