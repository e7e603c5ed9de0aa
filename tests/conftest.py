"""Shared pytest fixtures for power-ratings tests."""
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Generator, List, Optional
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Settings are read at import time; keep tests off Postgres and the rate limiter
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")

from powerratings.services.ratings.types import CompletedGame, SeedRating  # noqa: E402
from powerratings.utils.timezone import to_iso_z  # noqa: E402


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory database per test."""
    from powerratings.models import Base

    # One shared connection so the TestClient thread sees the same database
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


# =============================================================================
# PROVIDER FAKES
# =============================================================================

def make_odds_game(
    home_team: str,
    away_team: str,
    pinnacle: Optional[float] = None,
    retail: Optional[Dict[str, float]] = None,
    event_id: str = "evt-1",
    commence_time: str = "2026-01-10T19:00:00Z",
) -> dict:
    """One game in The Odds API shape with home spreads per bookmaker."""
    books = {}
    if pinnacle is not None:
        books["pinnacle"] = pinnacle
    books.update(retail or {})

    bookmakers = []
    for key, point in books.items():
        bookmakers.append({
            "key": key,
            "title": key.title(),
            "last_update": "2026-01-10T18:55:00Z",
            "markets": [{
                "key": "spreads",
                "outcomes": [
                    {"name": home_team, "price": -110, "point": point},
                    {"name": away_team, "price": -110, "point": -point},
                ],
            }],
        })
    return {
        "id": event_id,
        "sport_key": "basketball_ncaab",
        "commence_time": commence_time,
        "home_team": home_team,
        "away_team": away_team,
        "bookmakers": bookmakers,
    }


@pytest.fixture
def odds_game():
    """Factory for odds payload games: ``odds_game("Duke Blue Devils", "...", pinnacle=-3.5)``."""
    return make_odds_game


class FakeOddsService:
    """
    Stand-in for OddsApiService.

    ``boards`` maps ISO timestamps (``to_iso_z``) to odds boards; any other
    timestamp gets ``default``. Every call is recorded.
    """

    def __init__(self, boards: Optional[Dict[str, List[dict]]] = None, default: Optional[List[dict]] = None):
        self.boards = boards or {}
        self.default = default
        self.calls: List[dict] = []

    async def get_historical_odds(self, timestamp, regions="us,eu", markets="spreads", bookmakers=None):
        key = to_iso_z(timestamp)
        self.calls.append({"timestamp": key, "regions": regions})
        return self.boards.get(key, self.default)

    async def close(self):
        pass


@pytest.fixture
def fake_odds() -> FakeOddsService:
    return FakeOddsService(default=[])


@pytest.fixture
def seed_ratings() -> List[SeedRating]:
    return [
        SeedRating("Duke", 25.0, "ACC"),
        SeedRating("North Carolina", 18.0, "ACC"),
        SeedRating("Ohio St.", 12.0, "B10"),
        SeedRating("Saint Mary's", 15.0, "WCC"),
    ]


@pytest.fixture
def fake_kenpom(seed_ratings):
    service = AsyncMock()
    service.get_archive_ratings.return_value = seed_ratings
    return service


@pytest.fixture
def completed_games() -> List[CompletedGame]:
    return [
        CompletedGame(
            game_id="401",
            date=datetime(2026, 1, 10, 19, 0, tzinfo=timezone.utc),
            home_team="Duke Blue Devils",
            away_team="North Carolina Tar Heels",
            home_score=80,
            away_score=72,
            venue="Cameron Indoor Stadium",
        ),
        CompletedGame(
            game_id="402",
            date=datetime(2026, 1, 11, 1, 0, tzinfo=timezone.utc),
            home_team="Ohio State Buckeyes",
            away_team="Saint Mary's Gaels",
            home_score=65,
            away_score=70,
            is_neutral_site=True,
            venue="Barclays Center",
        ),
    ]


@pytest.fixture
def fake_schedule(completed_games):
    service = AsyncMock()
    service.get_completed_games.return_value = completed_games
    return service


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture(scope="function")
def test_client(db_session, fake_odds, fake_kenpom, fake_schedule):
    """
    FastAPI TestClient bound to the test database and provider fakes.

    Not used as a context manager, so the app lifespan (which closes the
    real provider clients) does not run.
    """
    from fastapi.testclient import TestClient
    from powerratings.main import app
    from powerratings.core.database import get_db
    from powerratings.api.dependencies import get_kenpom, get_odds_api, get_schedule

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_odds_api] = lambda: fake_odds
    app.dependency_overrides[get_kenpom] = lambda: fake_kenpom
    app.dependency_overrides[get_schedule] = lambda: fake_schedule

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
