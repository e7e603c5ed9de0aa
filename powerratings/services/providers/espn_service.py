"""
ESPN scoreboard client for completed men's college basketball games.

ESPN is the schedule source for recalculation: it says which games went
final, where they were played and whether the floor was neutral. Team
names come back as display names with mascots ("Duke Blue Devils") and are
resolved to rating keys by the caller.

Endpoint: {ESPN_SCOREBOARD_URL}?dates=YYYYMMDD&limit=200&groups=50
(groups=50 is Division I)
"""
import asyncio
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, RetryError

from powerratings.core.circuit_breaker import espn_api_breaker, CircuitBreakerError
from powerratings.core.logging import get_logger
from powerratings.core import metrics
from powerratings.services.ratings.types import CompletedGame
from powerratings.utils.timezone import parse_iso

logger = get_logger(__name__)

DIVISION_I_GROUP = "50"


def _int_or_none(value: Any) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def parse_scoreboard(data: Dict[str, Any]) -> List[CompletedGame]:
    """Completed games from one scoreboard response; unfinished games are dropped."""
    games = []
    for event in data.get("events") or []:
        competition = (event.get("competitions") or [None])[0]
        if not competition:
            continue

        competitors = competition.get("competitors") or []
        home = next((c for c in competitors if c.get("homeAway") == "home"), None)
        away = next((c for c in competitors if c.get("homeAway") == "away"), None)
        if home is None or away is None:
            continue

        status = (competition.get("status") or {}).get("type") or {}
        if not (status.get("completed") is True or status.get("state") == "post"):
            continue

        venue = competition.get("venue") or {}
        notes = competition.get("notes") or []
        game_date = parse_iso(competition.get("date") or event.get("date"))
        if game_date is None:
            continue

        games.append(CompletedGame(
            game_id=str(event.get("id")),
            date=game_date,
            home_team=(home.get("team") or {}).get("displayName") or (home.get("team") or {}).get("name") or "Unknown",
            away_team=(away.get("team") or {}).get("displayName") or (away.get("team") or {}).get("name") or "Unknown",
            home_score=_int_or_none(home.get("score")),
            away_score=_int_or_none(away.get("score")),
            is_neutral_site=competition.get("neutralSite") is True or venue.get("neutral") is True,
            venue=venue.get("fullName"),
            event_name=notes[0].get("headline") if notes else None,
        ))
    return games


class ESPNScheduleService:
    """
    Completed-games provider.

    Example:
        service = ESPNScheduleService()
        games = await service.get_completed_games(date(2025, 11, 3), date(2025, 11, 10))
    """

    def __init__(
        self,
        scoreboard_url: Optional[str] = None,
        request_delay: float = 0.1,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if scoreboard_url is None:
            from powerratings.core.config import settings
            scoreboard_url = settings.ESPN_SCOREBOARD_URL
        self.scoreboard_url = scoreboard_url
        self.request_delay = request_delay
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(20.0))
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10)
    )
    @espn_api_breaker
    async def _fetch_day(self, day: date) -> Dict[str, Any]:
        client = await self._get_client()
        response = await client.get(
            self.scoreboard_url,
            params={"dates": day.strftime("%Y%m%d"), "limit": 200, "groups": DIVISION_I_GROUP},
        )
        response.raise_for_status()
        return response.json()

    async def get_games_for_date(self, day: date) -> List[CompletedGame]:
        """Completed games on one day; empty list when ESPN is unavailable."""
        try:
            data = await self._fetch_day(day)
        except (httpx.HTTPError, RetryError, CircuitBreakerError, ValueError) as e:
            metrics.record_provider_failure("espn", type(e).__name__)
            logger.error(f"Error fetching ESPN scoreboard for {day}: {e}")
            return []
        return parse_scoreboard(data)

    async def get_completed_games(
        self,
        start: date,
        end: date,
        limit: Optional[int] = None,
    ) -> List[CompletedGame]:
        """Completed games between two dates (inclusive), oldest first."""
        if isinstance(start, datetime):
            start = start.date()
        if isinstance(end, datetime):
            end = end.date()

        games: List[CompletedGame] = []
        day = start
        while day <= end and (limit is None or len(games) < limit):
            games.extend(await self.get_games_for_date(day))
            day += timedelta(days=1)
            if day <= end:
                await asyncio.sleep(self.request_delay)

        games.sort(key=lambda g: (g.date, g.game_id))
        logger.info(f"Found {len(games)} completed games between {start} and {end}")
        return games[:limit] if limit is not None else games
