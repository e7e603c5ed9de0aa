#!/usr/bin/env python3
"""
Backfill Opening Lines

Fills in opening spreads for processed games that do not have one, by
looking back through historical odds boards 48, 36, 24 and 12 hours before
tip-off. Runs batches until nothing is left or --max-batches is reached.

Usage:
    # Show progress only
    python scripts/backfill_opening_lines.py --status

    # One batch of 50
    python scripts/backfill_opening_lines.py

    # Keep going for a date range
    python scripts/backfill_opening_lines.py --start-date 2025-11-03 --end-date 2025-11-30 --max-batches 20

Rate Limit Strategy:
- Up to four historical requests per game; games tipping off in the same
  hour share boards
- Games with no line found stay pending and are retried on the next run
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
from powerratings.services.providers.odds_api_service import get_odds_service
from powerratings.services.ratings.opening_line_backfiller import OpeningLineBackfiller
from powerratings.utils.timezone import end_of_day, start_of_day

configure_logging(level=settings.LOG_LEVEL, json_output=False)
logger = get_logger(__name__)


async def main():
    parser = argparse.ArgumentParser(description="Backfill opening spreads from historical odds")
    parser.add_argument("--season", type=int, default=None)
    parser.add_argument("--start-date", type=date.fromisoformat, default=None)
    parser.add_argument("--end-date", type=date.fromisoformat, default=None)
    parser.add_argument("--batch-size", type=int, default=settings.BACKFILL_BATCH_SIZE)
    parser.add_argument("--max-batches", type=int, default=1)
    parser.add_argument("--status", action="store_true", help="Print progress and exit")
    args = parser.parse_args()

    db = SessionLocal()
    odds = get_odds_service()
    try:
        backfiller = OpeningLineBackfiller(
            db,
            odds,
            batch_size=args.batch_size,
            lookback_hours=settings.BACKFILL_LOOKBACK_HOURS,
            delay_seconds=settings.BACKFILL_DELAY_SECONDS,
        )

        status = backfiller.status(args.season)
        logger.info(
            f"Opening spreads: {status['with_opening_spread']}/{status['total_games']} filled, "
            f"{status['missing_opening_spread']} missing"
        )
        if args.status:
            for day, count in backfiller.pending_by_date(args.season).items():
                logger.info(f"  {day}: {count} pending")
            return

        if not settings.THE_ODDS_API_KEY:
            logger.error("THE_ODDS_API_KEY environment variable not set")
            sys.exit(1)

        start = start_of_day(args.start_date) if args.start_date else None
        end = end_of_day(args.end_date) if args.end_date else None

        for batch in range(1, args.max_batches + 1):
            result = await backfiller.run(start_date=start, end_date=end, season=args.season)
            logger.info(
                f"Batch {batch}: {result.updated} updated, {result.not_found} not found, "
                f"{len(result.errors)} errors, {result.api_calls} API calls, {result.remaining} remaining"
            )
            # Stop when a batch makes no progress; the rest have no line available
            if result.remaining == 0 or result.updated == 0:
                break
    finally:
        db.close()
        await odds.close()


if __name__ == "__main__":
    asyncio.run(main())
