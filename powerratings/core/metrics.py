"""
Prometheus metrics for the power ratings service.

Metrics exposed:
- External API success/failure counters (Odds API, KenPom, ESPN)
- Odds API quota gauges
- Ratings engine counters (games adjusted, games skipped by reason)
- Opening-line backfill outcome counters
"""
from prometheus_client import Counter, Gauge

# External API Metrics
odds_api_requests_success_total = Counter(
    "odds_api_requests_success_total",
    "Total successful Odds API requests"
)

odds_api_requests_failure_total = Counter(
    "odds_api_requests_failure_total",
    "Total failed Odds API requests",
    ["error_type"]
)

provider_requests_failure_total = Counter(
    "provider_requests_failure_total",
    "Total failed requests to the seed and schedule providers",
    ["provider", "error_type"]
)

# API Quota Metrics
odds_api_quota_remaining = Gauge(
    "odds_api_quota_remaining",
    "Remaining Odds API requests for current billing period"
)

odds_api_quota_used = Gauge(
    "odds_api_quota_used",
    "Used Odds API requests in current billing period"
)

odds_api_quota_percentage = Gauge(
    "odds_api_quota_percentage",
    "Percentage of Odds API quota used"
)

# Ratings engine
ratings_games_adjusted_total = Counter(
    "ratings_games_adjusted_total",
    "Games whose closing line moved the ratings"
)

ratings_games_skipped_total = Counter(
    "ratings_games_skipped_total",
    "Games skipped during recalculation",
    ["reason"]
)

# Opening-line backfill
backfill_games_total = Counter(
    "backfill_games_total",
    "Opening-line backfill outcomes per game",
    ["outcome"]
)


def update_odds_api_quota(remaining: int, used: int, monthly_quota: int = 20000):
    """
    Update Odds API quota metrics.

    Args:
        remaining: Remaining requests
        used: Used requests
        monthly_quota: Monthly quota (default: 20000)
    """
    odds_api_quota_remaining.set(remaining)
    odds_api_quota_used.set(used)

    if used > 0 and monthly_quota > 0:
        odds_api_quota_percentage.set((used / monthly_quota) * 100)
    else:
        odds_api_quota_percentage.set(0)


def record_odds_api_request_success():
    odds_api_requests_success_total.inc()


def record_odds_api_request_failure(error_type: str = "unknown"):
    odds_api_requests_failure_total.labels(error_type=error_type).inc()


def record_provider_failure(provider: str, error_type: str = "unknown"):
    provider_requests_failure_total.labels(provider=provider, error_type=error_type).inc()


def record_game_adjusted():
    ratings_games_adjusted_total.inc()


def record_game_skipped(reason: str):
    ratings_games_skipped_total.labels(reason=reason).inc()


def record_backfill_outcome(outcome: str):
    """outcome is one of: updated, not_found, error."""
    backfill_games_total.labels(outcome=outcome).inc()
