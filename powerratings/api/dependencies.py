"""
FastAPI dependencies for the external provider clients.

Routes depend on these rather than constructing clients, so tests can swap
in fakes through ``app.dependency_overrides``.
"""
from powerratings.core.config import settings
from powerratings.services.providers.espn_service import ESPNScheduleService
from powerratings.services.providers.kenpom_service import KenPomService
from powerratings.services.providers.odds_api_service import OddsApiService, get_odds_service

_kenpom_service = None
_schedule_service = None


def get_odds_api() -> OddsApiService:
    return get_odds_service()


def get_kenpom() -> KenPomService:
    global _kenpom_service
    if _kenpom_service is None:
        _kenpom_service = KenPomService(api_key=settings.KENPOM_API_KEY, base_url=settings.KENPOM_BASE_URL)
    return _kenpom_service


def get_schedule() -> ESPNScheduleService:
    global _schedule_service
    if _schedule_service is None:
        _schedule_service = ESPNScheduleService(scoreboard_url=settings.ESPN_SCOREBOARD_URL)
    return _schedule_service


async def close_providers() -> None:
    """Close any provider HTTP clients opened during the app's lifetime."""
    await get_odds_service().close()
    for service in (_kenpom_service, _schedule_service):
        if service is not None:
            await service.close()
