"""
Circuit breakers for external provider calls.

Uses the pybreaker library. After ``fail_max`` consecutive failures a
breaker opens and calls fail immediately with ``CircuitBreakerError`` until
``reset_timeout`` has elapsed; callers treat an open breaker the same as any
other upstream failure ("no data for this attempt").

Circuit Breakers:
- odds_api_breaker: The Odds API (live and historical odds)
- kenpom_breaker: KenPom rating archive
- espn_api_breaker: ESPN scoreboard
"""
from pybreaker import CircuitBreaker, CircuitBreakerError

from powerratings.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FAIL_MAX = 5
DEFAULT_RESET_TIMEOUT = 60  # seconds

odds_api_breaker = CircuitBreaker(
    fail_max=DEFAULT_FAIL_MAX,
    reset_timeout=DEFAULT_RESET_TIMEOUT,
    name="odds_api",
)

kenpom_breaker = CircuitBreaker(
    fail_max=DEFAULT_FAIL_MAX,
    reset_timeout=DEFAULT_RESET_TIMEOUT,
    name="kenpom",
)

espn_api_breaker = CircuitBreaker(
    fail_max=DEFAULT_FAIL_MAX,
    reset_timeout=DEFAULT_RESET_TIMEOUT,
    name="espn_api",
)

__all__ = [
    "CircuitBreakerError",
    "odds_api_breaker",
    "kenpom_breaker",
    "espn_api_breaker",
    "get_all_breaker_states",
    "reset_breaker",
]


def get_all_breaker_states() -> dict[str, str]:
    """Current state ('closed', 'open', 'half-open') of every breaker."""
    return {
        breaker.name: breaker.current_state
        for breaker in (odds_api_breaker, kenpom_breaker, espn_api_breaker)
    }


def reset_breaker(breaker: CircuitBreaker) -> None:
    """Force a breaker back to closed. Only do this once the provider has recovered."""
    breaker.close()
    logger.warning(f"Circuit breaker '{breaker.name}' manually reset to CLOSED state")
