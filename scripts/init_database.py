#!/usr/bin/env python3
"""
Initialize database tables from SQLAlchemy models.

Creates the ratings tables if they are missing. With --seed, also loads the
season's starting ratings from KenPom (replacing any existing ratings for
that season).

Usage:
    python scripts/init_database.py
    python scripts/init_database.py --seed --season 2026 --seed-date 2025-04-07
"""
import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from powerratings.core.config import settings
from powerratings.core.logging import configure_logging, get_logger

configure_logging(level=settings.LOG_LEVEL, json_output=False)
logger = get_logger(__name__)


async def seed(season: int, seed_date: date) -> int:
    from powerratings.core.database import SessionLocal
    from powerratings.services.providers.kenpom_service import KenPomService
    from powerratings.services.ratings.ratings_service import RatingsService

    kenpom = KenPomService(api_key=settings.KENPOM_API_KEY, base_url=settings.KENPOM_BASE_URL)
    db = SessionLocal()
    try:
        ratings = await RatingsService(db, kenpom_service=kenpom).initialize_season(season, seed_date)
        return len(ratings)
    finally:
        db.close()
        await kenpom.close()


def main():
    parser = argparse.ArgumentParser(description="Create ratings tables and optionally seed a season")
    parser.add_argument("--seed", action="store_true", help="Load starting ratings from KenPom")
    parser.add_argument("--season", type=int, default=settings.RATINGS_SEASON)
    parser.add_argument(
        "--seed-date",
        type=date.fromisoformat,
        default=date.fromisoformat(settings.RATINGS_SEED_DATE),
        help="KenPom archive date to seed from (YYYY-MM-DD)",
    )
    args = parser.parse_args()

    from powerratings.core.database import init_db

    logger.info("Creating database tables from SQLAlchemy models...")
    init_db()
    logger.info("All database tables created")

    if args.seed:
        count = asyncio.run(seed(args.season, args.seed_date))
        logger.info(f"Seeded {count} teams for season {args.season} from {args.seed_date}")


if __name__ == "__main__":
    main()
