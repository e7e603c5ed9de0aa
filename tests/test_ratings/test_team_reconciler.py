"""Unit tests for cross-source team name reconciliation.

Test Strategy:
1. Payload matching tiers: override alias, exact, substring
2. Tie-breaking by payload order (first candidate wins)
3. Game lookup requires both home and away sides to match
4. Canonical resolution: override, exact, normalized, word-set
5. Override table semantics (last write wins, alias lookup)
6. Fuzzy suggestions for operators
"""
import pytest

from powerratings.services.ratings.team_reconciler import (
    OverrideBinding,
    OverrideTable,
    TeamNameReconciler,
    normalize_team_name,
    resolve_canonical,
    significant_words,
    suggest_canonical,
    words_match,
)
from powerratings.services.ratings.types import Provider

RATING_KEYS = ["Duke", "North Carolina", "Ohio St.", "Saint Mary's", "Connecticut", "Miami FL"]


@pytest.fixture
def uconn_overrides() -> OverrideTable:
    return OverrideTable([
        OverrideBinding(
            source_name="UConn",
            canonical_name="Connecticut",
            espn_name="UConn Huskies",
            odds_api_name="UConn Huskies",
        )
    ])


class TestMatchName:
    """Test suite for TeamNameReconciler.match_name."""

    # Tier Tests
    # ─────────────────────────────────────────────────────────────

    def test_exact_beats_substring(self):
        """Should prefer a case-insensitive exact match over a substring match."""
        reconciler = TeamNameReconciler()

        assert reconciler.match_name("Duke", ["Duke Blue Devils", "duke"]) == "duke"

    def test_substring_either_direction(self):
        """Should match when either name contains the other."""
        reconciler = TeamNameReconciler()

        assert reconciler.match_tier("Duke", "Duke Blue Devils") == 3
        assert reconciler.match_tier("Duke Blue Devils", "Duke") == 3

    def test_override_alias_is_tier_one(self, uconn_overrides):
        """Should rank the provider alias from an override above everything else."""
        reconciler = TeamNameReconciler(uconn_overrides)

        candidates = ["Connecticut College", "UConn Huskies"]

        assert reconciler.match_tier("Connecticut", "UConn Huskies", Provider.ODDS_API) == 1
        assert reconciler.match_name("Connecticut", candidates, Provider.ODDS_API) == "UConn Huskies"

    def test_no_match_returns_none(self):
        """Should return None when nothing matches at any tier."""
        reconciler = TeamNameReconciler()

        assert reconciler.match_name("Gonzaga", ["Duke Blue Devils", "Kentucky Wildcats"]) is None

    def test_similar_schools_do_not_match(self):
        """Should not confuse two schools that share a leading word."""
        reconciler = TeamNameReconciler()

        assert reconciler.match_name("Ohio State Buckeyes", ["Ohio Bobcats"]) is None
        assert resolve_canonical("Ohio Bobcats", RATING_KEYS) is None

    # Tie-breaking Tests
    # ─────────────────────────────────────────────────────────────

    def test_ties_resolve_to_first_candidate(self):
        """Should pick the first candidate in payload order when tiers tie."""
        reconciler = TeamNameReconciler()

        candidates = ["Miami (OH) RedHawks", "Miami Hurricanes"]

        assert reconciler.match_name("Miami", candidates) == "Miami (OH) RedHawks"


class TestFindMatchingGame:
    """Test suite for TeamNameReconciler.find_matching_game."""

    def test_both_sides_must_match(self, odds_game):
        """Should skip games where only one side matches."""
        games = [
            odds_game("Duke Blue Devils", "Kentucky Wildcats", event_id="a"),
            odds_game("Duke Blue Devils", "North Carolina Tar Heels", event_id="b"),
        ]

        match = TeamNameReconciler().find_matching_game("Duke", "North Carolina", games)

        assert match["id"] == "b"

    def test_home_and_away_are_not_swapped(self, odds_game):
        """Should not match a game with home and away reversed."""
        games = [odds_game("North Carolina Tar Heels", "Duke Blue Devils")]

        assert TeamNameReconciler().find_matching_game("Duke", "North Carolina", games) is None

    def test_empty_payload(self):
        """Should return None for an empty board."""
        assert TeamNameReconciler().find_matching_game("Duke", "North Carolina", []) is None


class TestResolveCanonical:
    """Test suite for resolve_canonical."""

    @pytest.mark.parametrize("external,expected", [
        ("Duke", "Duke"),
        ("duke", "Duke"),
        ("Duke Blue Devils", "Duke"),
        ("North Carolina Tar Heels", "North Carolina"),
        ("Ohio State Buckeyes", "Ohio St."),
        ("Saint Mary's Gaels", "Saint Mary's"),
        ("St Marys", "Saint Mary's"),
    ])
    def test_resolves_provider_spellings(self, external, expected):
        """Should map provider spellings onto rating keys."""
        assert resolve_canonical(external, RATING_KEYS) == expected

    def test_override_takes_precedence(self, uconn_overrides):
        """Should use the override binding before any name heuristics."""
        assert resolve_canonical("UConn Huskies", RATING_KEYS, uconn_overrides) == "Connecticut"
        assert resolve_canonical("UConn", RATING_KEYS, uconn_overrides) == "Connecticut"

    def test_override_to_unrated_team_is_ignored(self):
        """Should ignore an override whose canonical team has no rating."""
        overrides = OverrideTable([OverrideBinding("Zags", "Gonzaga")])

        assert resolve_canonical("Zags", RATING_KEYS, overrides) is None

    def test_unknown_team(self):
        """Should return None for a team with no rating."""
        assert resolve_canonical("Gonzaga Bulldogs", RATING_KEYS) is None
        assert resolve_canonical("", RATING_KEYS) is None


class TestNormalization:
    """Test suite for name normalization helpers."""

    def test_strips_mascot_and_abbreviates(self):
        """Should strip the mascot and abbreviate State/Saint."""
        assert normalize_team_name("Ohio State Buckeyes") == "ohio st."
        assert normalize_team_name("Ohio St.") == "ohio st."
        assert normalize_team_name("Saint Mary's Gaels") == "st. mary's"

    def test_significant_words(self):
        """Should reduce names to comparable words."""
        assert significant_words("Saint Mary's Gaels") == ["st", "marys"]

    def test_words_match_requires_same_st_status(self):
        """Should not match 'Kansas' against 'Kansas St.'."""
        assert not words_match(["kansas"], ["kansas", "st"])
        assert words_match(["miami", "fl"], ["miami", "fl"])


class TestOverrideTable:
    """Test suite for OverrideTable."""

    def test_last_write_wins(self):
        """Should replace an existing binding for the same source name."""
        table = OverrideTable()
        table.bind(OverrideBinding("Miami", "Miami FL"))
        previous = table.bind(OverrideBinding("miami", "Miami OH"))

        assert previous.canonical_name == "Miami FL"
        assert len(table) == 1
        assert table.canonical_for("Miami") == "Miami OH"

    def test_canonical_for_provider_alias(self, uconn_overrides):
        """Should resolve any provider alias case-insensitively."""
        assert uconn_overrides.canonical_for("uconn huskies") == "Connecticut"
        assert uconn_overrides.canonical_for("Huskies") is None

    def test_alternate_for_canonical_name(self, uconn_overrides):
        """Should return the provider spelling for a canonical team."""
        assert uconn_overrides.alternate_for("Connecticut", Provider.ODDS_API) == "UConn Huskies"
        assert uconn_overrides.alternate_for("Connecticut", Provider.SBR) is None


class TestSuggestCanonical:
    """Test suite for fuzzy suggestions."""

    def test_best_suggestion_first(self):
        """Should rank the closest canonical name first."""
        suggestions = suggest_canonical("Conecticut Huskies", RATING_KEYS, limit=3)

        assert suggestions[0][0] == "Connecticut"
        assert len(suggestions) == 3

    def test_empty_name(self):
        """Should return no suggestions for an empty name."""
        assert suggest_canonical("", RATING_KEYS) == []
