#!/usr/bin/env python3
"""
Recalculate Power Ratings

Processes completed games that have not been applied yet: fetches each
game's closing line, adjusts both teams' ratings and stores a snapshot.
Equivalent to POST /api/v1/ratings/calculate.

Usage:
    # Next 100 unprocessed games with configured defaults
    python scripts/recalculate_ratings.py

    # Retail average lines, half-strength updates, one week
    python scripts/recalculate_ratings.py --closing-source us_average --damping 0.5 \
        --start-date 2025-11-03 --end-date 2025-11-09

    # Reseed from KenPom and reprocess the whole season
    python scripts/recalculate_ratings.py --force-refresh --max-games 1000

Each odds board fetched costs historical quota on The Odds API; the run
summary reports how many were made.
"""
import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from powerratings.core.config import settings
from powerratings.core.database import SessionLocal
from powerratings.core.logging import configure_logging, get_logger
from powerratings.repositories import TeamRatingRepository
from powerratings.services.providers.espn_service import ESPNScheduleService
from powerratings.services.providers.kenpom_service import KenPomService
from powerratings.services.providers.odds_api_service import get_odds_service
from powerratings.services.ratings.adjustment_processor import rating_changes
from powerratings.services.ratings.ratings_service import RatingsService

configure_logging(level=settings.LOG_LEVEL, json_output=False)
logger = get_logger(__name__)


async def main():
    parser = argparse.ArgumentParser(description="Apply completed games to the power ratings")
    parser.add_argument("--season", type=int, default=settings.RATINGS_SEASON)
    parser.add_argument("--hca", type=float, default=None, help=f"Home-court advantage (default: {settings.RATINGS_HCA})")
    parser.add_argument("--closing-source", choices=["pinnacle", "us_average"], default=None)
    parser.add_argument("--damping", type=float, default=None, help="Damping factor (default: 1.0)")
    parser.add_argument("--max-games", type=int, default=settings.RATINGS_MAX_GAMES)
    parser.add_argument("--start-date", type=date.fromisoformat, default=None)
    parser.add_argument("--end-date", type=date.fromisoformat, default=None)
    parser.add_argument("--force-refresh", action="store_true", help="Reseed and reprocess every game")
    parser.add_argument("--top", type=int, default=10, help="Biggest movers to print")
    args = parser.parse_args()

    if not settings.THE_ODDS_API_KEY:
        logger.error("THE_ODDS_API_KEY environment variable not set")
        sys.exit(1)

    logger.info("=" * 60)
    logger.info(f"Power Ratings Recalculation - season {args.season}")
    logger.info("=" * 60)

    odds = get_odds_service()
    kenpom = KenPomService(api_key=settings.KENPOM_API_KEY, base_url=settings.KENPOM_BASE_URL)
    espn = ESPNScheduleService(scoreboard_url=settings.ESPN_SCOREBOARD_URL)
    db = SessionLocal()

    try:
        service = RatingsService(db, odds, kenpom, espn)
        result = await service.recalculate(
            season=args.season,
            hca=args.hca,
            closing_source=args.closing_source,
            damping_factor=args.damping,
            max_games=args.max_games,
            start_date=args.start_date,
            end_date=args.end_date,
            force_refresh=args.force_refresh,
        )

        logger.info("=" * 60)
        logger.info(f"Run {result.run_id} complete")
        logger.info("=" * 60)
        logger.info(f"Games found:     {result.games_found}")
        logger.info(f"Games processed: {result.games_processed}")
        logger.info(f"Games skipped:   {result.games_skipped}")
        logger.info(f"Odds API calls:  {result.api_calls}")
        for status, count in sorted(result.matching_stats.items()):
            logger.info(f"  {status}: {count}")

        ratings = TeamRatingRepository(db).load_season(args.season)
        logger.info(f"Biggest movers since seeding:")
        for team, change in rating_changes(ratings)[:args.top]:
            logger.info(f"  {team:<30} {change:+.2f}")

        if result.errors:
            logger.warning(f"Errors: {len(result.errors)}")
            for error in result.errors[:5]:
                logger.warning(f"  - {error}")
            if len(result.errors) > 5:
                logger.warning(f"  ... and {len(result.errors) - 5} more")

        quota = odds.get_quota_status()
        logger.info(f"Odds API quota: {quota}")
    finally:
        db.close()
        await odds.close()
        await kenpom.close()
        await espn.close()


if __name__ == "__main__":
    asyncio.run(main())
