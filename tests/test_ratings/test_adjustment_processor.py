"""Unit tests for the rating adjustment processor.

Test Strategy:
1. Per-game update arithmetic (projection, difference, damping, split)
2. Neutral-site handling (provider flag and keyword detection)
3. Zero-sum: the total of all ratings never changes
4. Skips: no closing line, unrated team
5. Order dependence and snapshot contents

Each test follows the pattern:
- Given: A ratings map and observed games
- When: process_game() / process_games() is called
- Then: Ratings and the returned adjustments match hand-computed values
"""
import copy
from datetime import datetime, timedelta, timezone

import pytest

from powerratings.services.ratings.adjustment_processor import (
    RatingAdjustmentProcessor,
    detect_neutral_site,
    rating_changes,
    rating_total,
    sort_games,
)
from powerratings.services.ratings.types import (
    ClosingLineSource,
    ObservedGame,
    SeedRating,
    TeamRating,
)

NOW = datetime(2026, 1, 12, 8, 0, tzinfo=timezone.utc)
TIPOFF = datetime(2026, 1, 10, 19, 0, tzinfo=timezone.utc)


def _ratings(**values) -> dict:
    return {name: TeamRating(team_name=name, rating=r, initial_rating=r) for name, r in values.items()}


def _game(game_id="g1", home="Home", away="Away", closing=-7.0, when=TIPOFF, **kwargs) -> ObservedGame:
    return ObservedGame(
        game_id=game_id,
        date=when,
        home_team=home,
        away_team=away,
        closing_spread=closing,
        closing_source=ClosingLineSource.PINNACLE,
        **kwargs,
    )


@pytest.fixture
def processor() -> RatingAdjustmentProcessor:
    return RatingAdjustmentProcessor(hca=1.0, damping_factor=0.5, clock=lambda: NOW)


class TestProcessGame:
    """Test suite for single-game adjustments."""

    # Arithmetic Tests
    # ─────────────────────────────────────────────────────────────

    def test_damped_adjustment(self, processor):
        """Should move each team by half the damped difference."""
        ratings = _ratings(Home=10.0, Away=8.0)

        adjustment = processor.process_game(_game(closing=-7.0), ratings)

        # projected = (8 - 10) - 1 = -3; difference = -4; adjustment = -2
        assert adjustment.projected_spread == pytest.approx(-3.0)
        assert adjustment.difference == pytest.approx(-4.0)
        assert adjustment.adjustment == pytest.approx(-2.0)
        assert ratings["Home"].rating == pytest.approx(11.0)
        assert ratings["Away"].rating == pytest.approx(7.0)
        assert adjustment.home_rating_before == 10.0
        assert adjustment.home_rating_after == pytest.approx(11.0)
        assert adjustment.away_rating_after == pytest.approx(7.0)

    def test_full_damping_moves_gap_by_difference(self):
        """Should move the rating gap by the whole difference at damping 1.0."""
        processor = RatingAdjustmentProcessor(hca=1.0, clock=lambda: NOW)
        ratings = _ratings(Home=10.0, Away=8.0)

        processor.process_game(_game(closing=-7.0), ratings)

        assert ratings["Home"].rating == pytest.approx(12.0)
        assert ratings["Away"].rating == pytest.approx(6.0)

    def test_market_agrees_with_projection(self, processor):
        """Should leave ratings unchanged when the line equals the projection."""
        ratings = _ratings(Home=10.0, Away=8.0)

        adjustment = processor.process_game(_game(closing=-3.0), ratings)

        assert adjustment.difference == 0.0
        assert ratings["Home"].rating == 10.0
        assert ratings["Away"].rating == 8.0

    def test_updates_counters_and_timestamp(self, processor):
        """Should bump games_processed and last_updated for both teams."""
        ratings = _ratings(Home=10.0, Away=8.0)

        processor.process_game(_game(), ratings)

        for team in ratings.values():
            assert team.games_processed == 1
            assert team.last_updated == NOW
            assert team.initial_rating in (10.0, 8.0)

    # Neutral Site Tests
    # ─────────────────────────────────────────────────────────────

    def test_neutral_flag_drops_hca(self, processor):
        """Should not apply HCA when the provider marks the game neutral."""
        ratings = _ratings(Home=10.0, Away=8.0)

        adjustment = processor.process_game(_game(is_neutral_site=True), ratings)

        assert adjustment.is_neutral_site is True
        assert adjustment.projected_spread == pytest.approx(-2.0)

    def test_neutral_detected_from_event_name(self, processor):
        """Should detect neutral floors from the event name."""
        ratings = _ratings(Home=10.0, Away=8.0)

        adjustment = processor.process_game(
            _game(is_neutral_site=None, event_name="Champions Classic"), ratings
        )

        assert adjustment.is_neutral_site is True

    # Skip Tests
    # ─────────────────────────────────────────────────────────────

    def test_skips_game_without_closing_line(self, processor):
        """Should return None and leave ratings untouched without a line."""
        ratings = _ratings(Home=10.0, Away=8.0)

        assert processor.process_game(_game(closing=None), ratings) is None
        assert ratings["Home"].rating == 10.0
        assert ratings["Home"].games_processed == 0

    def test_skips_unrated_team(self, processor):
        """Should return None when either team has no rating."""
        ratings = _ratings(Home=10.0)

        assert processor.process_game(_game(), ratings) is None
        assert ratings["Home"].rating == 10.0

    def test_negative_damping_rejected(self):
        """Should refuse a negative damping factor."""
        with pytest.raises(ValueError):
            RatingAdjustmentProcessor(hca=2.5, damping_factor=-0.1)


class TestProcessGames:
    """Test suite for batch processing."""

    def test_total_rating_is_preserved(self, processor):
        """Should keep the sum of all ratings constant across a batch."""
        ratings = _ratings(A=20.0, B=12.0, C=5.0, D=-3.0)
        games = [
            _game("g1", "A", "B", closing=-12.5),
            _game("g2", "C", "D", closing=-2.0, when=TIPOFF + timedelta(hours=2)),
            _game("g3", "B", "C", closing=-9.0, when=TIPOFF + timedelta(days=1)),
            _game("g4", "D", "A", closing=14.5, when=TIPOFF + timedelta(days=2), is_neutral_site=True),
        ]
        before = rating_total(ratings)

        adjustments = processor.process_games(games, ratings)

        assert len(adjustments) == 4
        assert rating_total(ratings) == pytest.approx(before)

    def test_order_matters(self):
        """Should produce different ratings when the same games run in another order."""
        games = [
            _game("g1", "A", "B", closing=-10.0),
            _game("g2", "B", "C", closing=-1.0, when=TIPOFF + timedelta(days=1)),
        ]
        forward = _ratings(A=10.0, B=5.0, C=0.0)
        backward = _ratings(A=10.0, B=5.0, C=0.0)

        RatingAdjustmentProcessor(hca=2.0, clock=lambda: NOW).process_games(games, forward)
        RatingAdjustmentProcessor(hca=2.0, clock=lambda: NOW).process_games(list(reversed(games)), backward)

        assert forward["C"].rating != pytest.approx(backward["C"].rating)

    def test_repeat_runs_are_identical(self):
        """Should produce the same adjustments and ratings from the same inputs."""
        start = _ratings(A=20.0, B=12.0, C=5.0, D=-3.0)
        games = sort_games([
            _game("g1", "A", "B", closing=-12.5),
            _game("g2", "C", "D", closing=-2.0, when=TIPOFF + timedelta(hours=2)),
            _game("g3", "B", "C", closing=-9.0, when=TIPOFF + timedelta(days=1), venue="Madison Square Garden"),
            _game("g4", "D", "A", closing=14.5, when=TIPOFF + timedelta(days=2), is_neutral_site=True),
        ])
        first_ratings = copy.deepcopy(start)
        second_ratings = copy.deepcopy(start)

        first = RatingAdjustmentProcessor(hca=2.5, damping_factor=0.5, clock=lambda: NOW).process_games(
            games, first_ratings
        )
        second = RatingAdjustmentProcessor(hca=2.5, damping_factor=0.5, clock=lambda: NOW).process_games(
            games, second_ratings
        )

        assert len(first) == 4
        assert first == second
        assert first_ratings == second_ratings

    def test_sort_games_is_chronological(self):
        """Should order games by date, then game_id."""
        games = [
            _game("b", when=TIPOFF),
            _game("c", when=TIPOFF - timedelta(days=1)),
            _game("a", when=TIPOFF),
        ]

        assert [g.game_id for g in sort_games(games)] == ["c", "a", "b"]


class TestSnapshotsAndSeeds:
    """Test suite for seeding and snapshots."""

    def test_initialize_ratings_from_seeds(self, processor):
        """Should create ratings whose initial rating equals the seed."""
        ratings = processor.initialize_ratings([SeedRating("Duke", 25.0, "ACC")])

        duke = ratings["Duke"]
        assert duke.rating == duke.initial_rating == 25.0
        assert duke.games_processed == 0
        assert duke.conference == "ACC"
        assert duke.last_updated == NOW

    def test_snapshot_sorted_by_rating(self, processor):
        """Should list ratings best first and count the adjustments."""
        ratings = _ratings(Home=10.0, Away=8.0, Idle=15.0)
        adjustments = processor.process_games([_game()], ratings)

        snapshot = processor.create_snapshot(ratings, adjustments, season=2026)

        assert [r.team_name for r in snapshot.ratings] == ["Idle", "Home", "Away"]
        assert snapshot.games_processed == 1
        assert snapshot.as_of_date == NOW
        assert snapshot.to_dict()["closing_source"] == "pinnacle"

    def test_rating_changes_biggest_first(self, processor):
        """Should rank teams by absolute movement since seeding."""
        ratings = _ratings(Home=10.0, Away=8.0, Idle=15.0)
        processor.process_games([_game(closing=-9.0)], ratings)

        changes = rating_changes(ratings)

        assert changes[-1] == ("Idle", 0.0)
        assert {team for team, _ in changes[:2]} == {"Home", "Away"}


class TestDetectNeutralSite:
    """Test suite for neutral-site detection."""

    @pytest.mark.parametrize("flag,venue,event_name,expected", [
        (True, None, None, True),
        (False, "Cameron Indoor Stadium", None, False),
        (None, "Neutral Site Arena", None, True),
        (None, None, "Maui Invitational - Semifinal", True),
        (None, None, "NCAA Tournament - First Round", True),
        (None, "Unity Arena", None, False),
        (None, None, None, False),
    ])
    def test_detection(self, flag, venue, event_name, expected):
        """Should combine the provider flag with keyword matching."""
        assert detect_neutral_site(flag, venue, event_name) is expected
