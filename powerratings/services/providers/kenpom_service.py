"""
KenPom API client: the rating seed provider.

A season is seeded from the archive of the previous season's final
ratings (``endpoint=archive&d=YYYY-MM-DD``). ``AdjEM`` (adjusted
efficiency margin) is used as the power rating: points per 100
possessions better than an average team, which is close enough to points
per game to serve as a starting spread rating.
"""
from datetime import date
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, RetryError

from powerratings.core.circuit_breaker import kenpom_breaker, CircuitBreakerError
from powerratings.core.exceptions import SeedProviderError
from powerratings.core.logging import get_logger
from powerratings.core import metrics
from powerratings.services.ratings.types import SeedRating

logger = get_logger(__name__)


def parse_ratings(rows: List[Dict[str, Any]]) -> List[SeedRating]:
    """Seed tuples from KenPom rows; rows without a name or AdjEM are dropped."""
    seeds = []
    for row in rows or []:
        name = row.get("TeamName")
        adj_em = row.get("AdjEM")
        if not name or adj_em is None:
            continue
        try:
            rating = float(adj_em)
        except (TypeError, ValueError):
            logger.warning(f"Unparseable AdjEM for {name}: {adj_em!r}")
            continue
        seeds.append(SeedRating(team_name=name, power_rating=rating, conference=row.get("ConfShort")))
    return seeds


class KenPomService:
    """
    Example:
        service = KenPomService(api_key=settings.KENPOM_API_KEY)
        seeds = await service.get_archive_ratings(date(2025, 4, 7))
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://kenpom.com/api.php",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10)
    )
    @kenpom_breaker
    async def _fetch(self, params: Dict[str, Any]) -> Any:
        client = await self._get_client()
        response = await client.get(self.base_url, params=params)
        response.raise_for_status()
        return response.json()

    async def _get_seeds(self, params: Dict[str, Any]) -> List[SeedRating]:
        if not self.api_key:
            raise SeedProviderError("KENPOM_API_KEY is not configured")
        try:
            rows = await self._fetch(params)
        except (httpx.HTTPError, RetryError, CircuitBreakerError, ValueError) as e:
            metrics.record_provider_failure("kenpom", type(e).__name__)
            raise SeedProviderError(f"KenPom request failed ({params.get('endpoint')}): {e}") from e

        seeds = parse_ratings(rows if isinstance(rows, list) else [])
        if not seeds:
            raise SeedProviderError(f"KenPom returned no ratings for {params}")
        logger.info(f"Loaded {len(seeds)} seed ratings from KenPom ({params.get('endpoint')})")
        return seeds

    async def get_archive_ratings(self, as_of: date) -> List[SeedRating]:
        """Ratings as published on ``as_of``. Raises SeedProviderError on failure."""
        return await self._get_seeds({"endpoint": "archive", "d": as_of.isoformat()})

    async def get_current_ratings(self, season: int) -> List[SeedRating]:
        return await self._get_seeds({"endpoint": "ratings", "y": season})
