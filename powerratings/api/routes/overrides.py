"""
Team override endpoints for the operator workflow.

Key Endpoints:
- GET    /api/v1/ratings/overrides              - List overrides
- POST   /api/v1/ratings/overrides              - Create or replace an override
- PUT    /api/v1/ratings/overrides/{source}     - Replace an existing override
- DELETE /api/v1/ratings/overrides/{source}     - Remove an override
- GET    /api/v1/ratings/overrides/aliases      - Provider alias map
- POST   /api/v1/ratings/overrides/aliases      - Bind a provider spelling
- DELETE /api/v1/ratings/overrides/aliases      - Unbind a provider spelling
- GET    /api/v1/ratings/overrides/suggestions  - Canonical names similar to a name
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from powerratings.core.database import get_db
from powerratings.core.exceptions import OverrideValidationError
from powerratings.services.ratings.override_service import OverrideService
from powerratings.services.ratings.types import Provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ratings/overrides", tags=["ratings-overrides"])


class OverrideRequest(BaseModel):
    source_name: str = Field(..., min_length=1)
    canonical_name: str = Field(..., min_length=1)
    espn_name: Optional[str] = None
    odds_api_name: Optional[str] = None
    sbr_name: Optional[str] = None
    source: str = "manual"
    notes: Optional[str] = None


class OverrideUpdate(BaseModel):
    canonical_name: str = Field(..., min_length=1)
    espn_name: Optional[str] = None
    odds_api_name: Optional[str] = None
    sbr_name: Optional[str] = None
    notes: Optional[str] = None


class AliasRequest(BaseModel):
    provider: Provider
    alias: str = Field(..., min_length=1)
    canonical_name: Optional[str] = None


def _serialize(override) -> dict:
    return {
        "id": override.id,
        "source_name": override.source_name,
        "canonical_name": override.canonical_name,
        "espn_name": override.espn_name,
        "odds_api_name": override.odds_api_name,
        "sbr_name": override.sbr_name,
        "source": override.source,
        "notes": override.notes,
    }


@router.get("")
async def list_overrides(db: Session = Depends(get_db)):
    overrides = OverrideService(db).list_overrides()
    return {"count": len(overrides), "overrides": [_serialize(o) for o in overrides]}


@router.post("")
async def upsert_override(request: OverrideRequest, db: Session = Depends(get_db)):
    """Create or replace the binding for ``source_name`` (last write wins)."""
    try:
        override = OverrideService(db).upsert_override(**request.model_dump())
    except OverrideValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "override": _serialize(override)}


@router.get("/aliases")
async def get_aliases(provider: Provider = Query(...), db: Session = Depends(get_db)):
    return {"provider": provider.value, "aliases": OverrideService(db).provider_aliases(provider)}


@router.post("/aliases")
async def set_alias(request: AliasRequest, db: Session = Depends(get_db)):
    if not request.canonical_name:
        raise HTTPException(status_code=400, detail="canonical_name is required")
    try:
        override = OverrideService(db).set_provider_alias(
            request.canonical_name, request.provider, request.alias
        )
    except OverrideValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "override": _serialize(override)}


@router.delete("/aliases")
async def remove_alias(
    provider: Provider = Query(...),
    alias: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    cleared = OverrideService(db).remove_provider_alias(provider, alias)
    return {"success": True, "cleared": cleared}


@router.get("/suggestions")
async def get_suggestions(
    name: str = Query(..., min_length=1),
    season: Optional[int] = None,
    limit: int = Query(default=5, ge=1, le=20),
    db: Session = Depends(get_db),
):
    """Canonical names that look like ``name``; for filling in an override by hand."""
    return {"name": name, "suggestions": OverrideService(db).suggestions(name, season, limit)}


@router.put("/{source_name}")
async def update_override(source_name: str, request: OverrideUpdate, db: Session = Depends(get_db)):
    """Replace an existing override; unlike POST this never creates one."""
    service = OverrideService(db)
    existing = service.get_override(source_name)
    if existing is None:
        raise HTTPException(status_code=404, detail=f"Override not found: {source_name}")
    try:
        override = service.upsert_override(source_name, source=existing.source, **request.model_dump())
    except OverrideValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "override": _serialize(override)}


@router.delete("/{source_name}")
async def delete_override(source_name: str, db: Session = Depends(get_db)):
    if not OverrideService(db).delete_override(source_name):
        raise HTTPException(status_code=404, detail=f"Override not found: {source_name}")
    return {"success": True}
