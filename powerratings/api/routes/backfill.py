"""
Opening-line backfill endpoints.

Each POST processes one bounded batch; call it again while
``remaining`` is above zero.

Key Endpoints:
- POST /api/v1/ratings/backfill-opening         - Run one batch
- GET  /api/v1/ratings/backfill-opening/status  - Progress counts
"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from powerratings.api.dependencies import get_odds_api
from powerratings.core.config import settings
from powerratings.core.database import get_db
from powerratings.services.ratings.opening_line_backfiller import OpeningLineBackfiller
from powerratings.utils.timezone import end_of_day, start_of_day

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ratings/backfill-opening", tags=["ratings-backfill"])


class BackfillRequest(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    season: Optional[int] = None
    batch_size: int = Field(default=settings.BACKFILL_BATCH_SIZE, ge=1, le=500)


@router.post("")
async def run_backfill(
    request: BackfillRequest,
    db: Session = Depends(get_db),
    odds_service=Depends(get_odds_api),
):
    if request.start_date and request.end_date and request.start_date > request.end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")

    backfiller = OpeningLineBackfiller(
        db,
        odds_service,
        batch_size=request.batch_size,
        lookback_hours=settings.BACKFILL_LOOKBACK_HOURS,
        delay_seconds=settings.BACKFILL_DELAY_SECONDS,
    )
    result = await backfiller.run(
        start_date=start_of_day(request.start_date) if request.start_date else None,
        end_date=end_of_day(request.end_date) if request.end_date else None,
        season=request.season,
    )
    return {"success": True, **result.to_dict()}


@router.get("/status")
async def backfill_status(
    season: Optional[int] = None,
    db: Session = Depends(get_db),
):
    backfiller = OpeningLineBackfiller(db, odds_service=None)
    return {
        **backfiller.status(season),
        "pending_by_date": backfiller.pending_by_date(season),
    }
