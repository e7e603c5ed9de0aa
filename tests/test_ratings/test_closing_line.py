"""Unit tests for closing line resolution.

Test Strategy:
1. Sharp book (Pinnacle) is used as-is when it has a spread
2. Retail average is the fallback, rounded to the nearest half point
3. us_average mode never looks at the sharp book
4. Games with no usable spread resolve to "unresolved"
5. Home outcome lookup is exact first, then case-insensitive
"""
import pytest

from powerratings.services.ratings.closing_line import (
    ClosingLineResolver,
    home_spread_point,
    round_to_half,
)
from powerratings.services.ratings.types import ClosingLineSource


class TestRoundToHalf:
    """Test suite for half-point rounding."""

    @pytest.mark.parametrize("value,expected", [
        (-3.6, -3.5),
        (-3.8, -4.0),
        (-3.25, -3.0),
        (2.75, 3.0),
        (2.2, 2.0),
        (0.0, 0.0),
    ])
    def test_rounds_to_nearest_half(self, value, expected):
        """Should round to the nearest 0.5, halves upward."""
        assert round_to_half(value) == expected


class TestClosingLineResolver:
    """Test suite for ClosingLineResolver."""

    # Sharp Book Tests
    # ─────────────────────────────────────────────────────────────

    def test_prefers_pinnacle(self, odds_game):
        """Should take the Pinnacle number even when retail books disagree."""
        game = odds_game("Duke Blue Devils", "North Carolina Tar Heels",
                         pinnacle=-4.5, retail={"draftkings": -5.5, "fanduel": -5.0})

        result = ClosingLineResolver(ClosingLineSource.PINNACLE).resolve(game)

        assert result.resolved
        assert result.spread == -4.5
        assert result.source == ClosingLineSource.PINNACLE
        assert result.bookmakers == ("Pinnacle",)
        assert result.timestamp is not None

    def test_malformed_last_update_keeps_spread(self, odds_game):
        """Should still resolve the spread when a book's timestamp is garbage."""
        game = odds_game("Duke Blue Devils", "North Carolina Tar Heels", pinnacle=-3.5)
        game["bookmakers"][0]["last_update"] = "not-a-date"

        result = ClosingLineResolver(ClosingLineSource.PINNACLE).resolve(game)

        assert result.spread == -3.5
        assert result.timestamp is None

    def test_malformed_last_update_in_retail_average(self, odds_game):
        """Should ignore a bad timestamp from one retail book and keep the others."""
        game = odds_game("Duke Blue Devils", "North Carolina Tar Heels",
                         retail={"draftkings": -5.5, "fanduel": -5.0})
        game["bookmakers"][0]["last_update"] = "yesterday"

        result = ClosingLineResolver(ClosingLineSource.US_AVERAGE).resolve(game)

        assert result.spread == -5.0
        assert result.timestamp is not None

    def test_falls_back_to_retail_average(self, odds_game):
        """Should average the retail books when Pinnacle has no line."""
        game = odds_game("Duke Blue Devils", "North Carolina Tar Heels",
                         retail={"draftkings": -5.5, "fanduel": -5.0, "betmgm": -6.0})

        result = ClosingLineResolver(ClosingLineSource.PINNACLE).resolve(game)

        assert result.spread == -5.5
        assert result.source == ClosingLineSource.US_AVERAGE
        assert len(result.bookmakers) == 3

    # Retail Average Tests
    # ─────────────────────────────────────────────────────────────

    def test_us_average_ignores_pinnacle(self, odds_game):
        """Should ignore the sharp book in us_average mode."""
        game = odds_game("Duke Blue Devils", "North Carolina Tar Heels",
                         pinnacle=-3.0, retail={"draftkings": -4.0, "fanduel": -4.5})

        result = ClosingLineResolver(ClosingLineSource.US_AVERAGE).resolve(game)

        # mean -4.25 rounds to -4.0
        assert result.spread == -4.0
        assert result.source == ClosingLineSource.US_AVERAGE

    def test_non_retail_books_are_not_averaged(self, odds_game):
        """Should only average the configured retail books."""
        game = odds_game("Duke Blue Devils", "North Carolina Tar Heels",
                         retail={"draftkings": -4.0, "bovada": -10.0})

        result = ClosingLineResolver(ClosingLineSource.US_AVERAGE).resolve(game)

        assert result.spread == -4.0

    # Unresolved Tests
    # ─────────────────────────────────────────────────────────────

    def test_no_bookmakers_is_unresolved(self, odds_game):
        """Should return an unresolved result when there are no bookmakers."""
        game = odds_game("Duke Blue Devils", "North Carolina Tar Heels")

        result = ClosingLineResolver().resolve(game)

        assert not result.resolved
        assert result.spread is None

    def test_only_pinnacle_in_us_average_mode_is_unresolved(self, odds_game):
        """Should not fall back to Pinnacle when the retail average is requested."""
        game = odds_game("Duke Blue Devils", "North Carolina Tar Heels", pinnacle=-3.0)

        result = ClosingLineResolver(ClosingLineSource.US_AVERAGE).resolve(game)

        assert not result.resolved


class TestHomeSpreadPoint:
    """Test suite for home outcome lookup."""

    def test_case_insensitive_fallback(self):
        """Should match the home outcome case-insensitively when exact match fails."""
        book = {"key": "pinnacle", "markets": [{"key": "spreads", "outcomes": [
            {"name": "DUKE BLUE DEVILS", "point": -2.5},
            {"name": "North Carolina Tar Heels", "point": 2.5},
        ]}]}

        assert home_spread_point(book, "Duke Blue Devils") == -2.5

    def test_ignores_other_markets(self):
        """Should only read the spreads market."""
        book = {"key": "pinnacle", "markets": [{"key": "h2h", "outcomes": [
            {"name": "Duke Blue Devils", "price": -200},
        ]}]}

        assert home_spread_point(book, "Duke Blue Devils") is None
