"""
Ratings API endpoints.

Key Endpoints:
- GET  /api/v1/ratings              - Current ratings and recent adjustments
- POST /api/v1/ratings/calculate    - Process newly completed games
- GET  /api/v1/ratings/projection   - Projected spread for a matchup
- GET  /api/v1/ratings/snapshots    - Snapshot history
"""
import logging
from dataclasses import asdict
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from powerratings.api.dependencies import get_kenpom, get_odds_api, get_schedule
from powerratings.core.config import settings
from powerratings.core.database import get_db
from powerratings.core.exceptions import RatingsNotInitializedError, SeedProviderError, TeamNotFoundError
from powerratings.services.ratings.ratings_service import RatingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ratings", tags=["ratings"])


class CalculateRequest(BaseModel):
    """Request model for a recalculation run. Omitted fields use settings."""
    season: Optional[int] = None
    hca: Optional[float] = None
    closing_source: Optional[Literal["pinnacle", "us_average"]] = None
    damping_factor: Optional[float] = Field(default=None, ge=0)
    max_games: Optional[int] = Field(default=None, ge=1, le=1000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    force_refresh: bool = False


@router.get("")
async def get_ratings(
    season: int = Query(default=settings.RATINGS_SEASON),
    adjustments: int = Query(default=50, ge=0, le=500),
    db: Session = Depends(get_db),
):
    """
    Current ratings for a season, best first, with the most recent
    adjustments and the latest snapshot's metadata.
    """
    try:
        return RatingsService(db).get_current(season, adjustment_limit=adjustments)
    except RatingsNotInitializedError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/calculate")
async def calculate_ratings(
    request: CalculateRequest,
    db: Session = Depends(get_db),
    odds_service=Depends(get_odds_api),
    kenpom_service=Depends(get_kenpom),
    schedule_service=Depends(get_schedule),
):
    """Process completed games that have not been folded into the ratings yet."""
    service = RatingsService(db, odds_service, kenpom_service, schedule_service)
    try:
        result = await service.recalculate(
            season=request.season,
            hca=request.hca,
            closing_source=request.closing_source,
            damping_factor=request.damping_factor,
            max_games=request.max_games,
            start_date=request.start_date,
            end_date=request.end_date,
            force_refresh=request.force_refresh,
        )
    except SeedProviderError as e:
        logger.error(f"Ratings could not be seeded: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {"success": True, **result.to_dict()}


@router.get("/projection")
async def get_projection(
    home: str = Query(..., min_length=1),
    away: str = Query(..., min_length=1),
    neutral: bool = False,
    hca: Optional[float] = None,
    season: int = Query(default=settings.RATINGS_SEASON),
    db: Session = Depends(get_db),
):
    """Projected home spread (negative = home favored)."""
    try:
        projection = RatingsService(db).get_projection(home, away, season, is_neutral_site=neutral, hca=hca)
    except (RatingsNotInitializedError, TeamNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    return asdict(projection)


@router.get("/snapshots")
async def list_snapshots(
    season: int = Query(default=settings.RATINGS_SEASON),
    limit: int = Query(default=20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    return {"season": season, "snapshots": RatingsService(db).list_snapshots(season, limit)}
