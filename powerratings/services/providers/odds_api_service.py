"""
The Odds API client for NCAA basketball spreads.

Two entry points:
- ``get_game_odds``: live spreads for upcoming games (cached)
- ``get_historical_odds``: the odds board "as of" an exact timestamp

Paid Plan: 20,000 requests/month. Historical queries cost more quota than
live ones, so callers cache historical snapshots themselves per batch.
Quota Tracking: response headers x-requests-remaining, x-requests-used
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, RetryError

from powerratings.core.circuit_breaker import odds_api_breaker, CircuitBreakerError
from powerratings.core.logging import get_logger
from powerratings.core import metrics
from powerratings.utils.cache import TimedCache
from powerratings.utils.timezone import to_iso_z

logger = get_logger(__name__)

THE_ODDS_API_BASE = "https://api.the-odds-api.com/v4"

# Failures that mean "no data for this attempt"
FETCH_ERRORS = (httpx.HTTPError, RetryError, CircuitBreakerError, ValueError)


class OddsApiService:
    """
    The Odds API service.

    Example:
        service = OddsApiService(api_key=settings.THE_ODDS_API_KEY)
        board = await service.get_historical_odds(kickoff - timedelta(hours=24))
        await service.close()
    """

    def __init__(
        self,
        api_key: str,
        sport_key: str = "basketball_ncaab",
        cache_ttl: int = 600,
        monthly_quota: int = 20000,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.sport_key = sport_key
        self.monthly_quota = monthly_quota
        self._cache: TimedCache[List[Dict]] = TimedCache(ttl_seconds=cache_ttl)
        self._client = client

        self._requests_remaining: Optional[int] = None
        self._requests_used: Optional[int] = None
        self._quota_last_updated: Optional[datetime] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ========================================================================
    # Quota
    # ========================================================================

    def _update_quota_from_headers(self, response: httpx.Response):
        try:
            remaining = response.headers.get("x-requests-remaining")
            used = response.headers.get("x-requests-used")
            if remaining:
                self._requests_remaining = int(float(remaining))
            if used:
                self._requests_used = int(float(used))
            self._quota_last_updated = datetime.now()
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to parse quota headers: {e}")
            return

        if self._requests_remaining is not None:
            if self._requests_remaining < self.monthly_quota * 0.05:
                logger.error(f"Odds API quota critically low: {self._requests_remaining} requests remaining")
            elif self._requests_remaining < self.monthly_quota * 0.2:
                logger.warning(f"Odds API quota running low: {self._requests_remaining} requests remaining")

        if self._requests_remaining is not None and self._requests_used is not None:
            metrics.update_odds_api_quota(
                remaining=self._requests_remaining,
                used=self._requests_used,
                monthly_quota=self.monthly_quota,
            )

    def get_quota_status(self) -> Dict[str, Any]:
        return {
            "requests_remaining": self._requests_remaining,
            "requests_used": self._requests_used,
            "last_updated": self._quota_last_updated.isoformat() if self._quota_last_updated else None,
            "monthly_quota": self.monthly_quota,
        }

    # ========================================================================
    # HTTP
    # ========================================================================

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10)
    )
    @odds_api_breaker
    async def _fetch_json(self, path: str, params: Dict[str, Any]) -> Any:
        client = await self._get_client()
        response = await client.get(
            f"{THE_ODDS_API_BASE}{path}",
            params={"apiKey": self.api_key, **params},
        )
        self._update_quota_from_headers(response)
        response.raise_for_status()
        return response.json()

    # ========================================================================
    # Live odds
    # ========================================================================

    async def get_game_odds(self, regions: str = "us", markets: str = "spreads") -> List[Dict]:
        """
        Current spreads for upcoming games.

        Returns:
            List of games in The Odds API shape; empty list on failure
        """
        cache_key = f"odds:{self.sport_key}:{regions}:{markets}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            games = await self._fetch_json(
                f"/sports/{self.sport_key}/odds",
                {"regions": regions, "markets": markets, "oddsFormat": "american"},
            )
        except FETCH_ERRORS as e:
            metrics.record_odds_api_request_failure(type(e).__name__)
            logger.error(f"Error fetching live odds for {self.sport_key}: {e}")
            return []

        metrics.record_odds_api_request_success()
        games = games or []
        await self._cache.set(cache_key, games)
        return games

    # ========================================================================
    # Historical odds
    # ========================================================================

    async def get_historical_odds(
        self,
        timestamp: datetime,
        regions: str = "us,eu",
        markets: str = "spreads",
        bookmakers: Optional[Sequence[str]] = None,
    ) -> Optional[List[Dict]]:
        """
        The odds board as it stood at ``timestamp``.

        Args:
            timestamp: Point in time to query (any timezone; sent as UTC)
            regions: Comma-separated regions
            markets: Comma-separated markets
            bookmakers: Restrict to these bookmaker keys (overrides regions)

        Returns:
            List of games (possibly empty), or None when the request failed
        """
        params: Dict[str, Any] = {
            "markets": markets,
            "oddsFormat": "american",
            "date": to_iso_z(timestamp),
        }
        if bookmakers:
            params["bookmakers"] = ",".join(bookmakers)
        else:
            params["regions"] = regions

        try:
            payload = await self._fetch_json(f"/historical/sports/{self.sport_key}/odds", params)
        except FETCH_ERRORS as e:
            metrics.record_odds_api_request_failure(type(e).__name__)
            logger.warning(f"Historical odds unavailable at {params['date']}: {e}")
            return None

        metrics.record_odds_api_request_success()
        if isinstance(payload, dict):
            return payload.get("data") or []
        return payload or []


_odds_service: Optional[OddsApiService] = None


def get_odds_service() -> OddsApiService:
    """Get or create the process-wide OddsApiService."""
    global _odds_service
    if _odds_service is None:
        from powerratings.core.config import settings
        _odds_service = OddsApiService(
            api_key=settings.THE_ODDS_API_KEY,
            sport_key=settings.ODDS_API_SPORT_KEY,
            cache_ttl=settings.ODDS_API_CACHE_TTL,
            monthly_quota=settings.ODDS_API_MONTHLY_QUOTA,
        )
    return _odds_service
