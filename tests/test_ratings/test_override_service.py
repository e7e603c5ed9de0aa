"""Integration tests for the override service.

Test Strategy:
1. Upsert creates and replaces bindings (last write wins)
2. Validation of required fields
3. A provider alias belongs to one row only; cleared bindings are logged
4. Provider alias writes create a row for the canonical team when needed
5. Suggestions come from the season's rated teams
"""
import logging

import pytest
from sqlalchemy.orm import Session

from powerratings.core.exceptions import OverrideValidationError
from powerratings.models import TeamOverride
from powerratings.repositories import TeamRatingRepository
from powerratings.services.ratings.override_service import OverrideService
from powerratings.services.ratings.types import Provider, TeamRating


@pytest.fixture
def service(db_session: Session) -> OverrideService:
    return OverrideService(db_session)


class TestUpsertOverride:
    """Test suite for OverrideService.upsert_override."""

    def test_creates_override(self, service, db_session):
        """Should persist a new binding."""
        override = service.upsert_override("UConn", "Connecticut", odds_api_name="UConn Huskies")

        assert override.id is not None
        stored = db_session.query(TeamOverride).one()
        assert stored.canonical_name == "Connecticut"
        assert stored.odds_api_name == "UConn Huskies"
        assert stored.source == "manual"

    def test_last_write_wins(self, service, db_session, caplog):
        """Should replace the canonical team and log the rebinding."""
        service.upsert_override("Miami", "Miami FL")

        with caplog.at_level(logging.WARNING):
            service.upsert_override("Miami", "Miami OH")

        assert db_session.query(TeamOverride).count() == 1
        assert service.list_overrides()[0].canonical_name == "Miami OH"
        assert any("Rebinding 'Miami'" in r.getMessage() for r in caplog.records)

    def test_requires_names(self, service):
        """Should reject empty source or canonical names."""
        with pytest.raises(OverrideValidationError):
            service.upsert_override("  ", "Connecticut")
        with pytest.raises(OverrideValidationError):
            service.upsert_override("UConn", "")

    def test_alias_moves_between_rows(self, service, db_session, caplog):
        """Should clear a provider alias from any other row that held it."""
        service.upsert_override("UConn", "Connecticut", odds_api_name="Huskies")

        with caplog.at_level(logging.WARNING):
            service.upsert_override("Washington", "Washington", odds_api_name="Huskies")

        uconn = db_session.query(TeamOverride).filter_by(source_name="UConn").one()
        washington = db_session.query(TeamOverride).filter_by(source_name="Washington").one()
        assert uconn.odds_api_name is None
        assert washington.odds_api_name == "Huskies"
        assert any("Clearing odds_api_name='Huskies'" in r.getMessage() for r in caplog.records)

    def test_delete_override(self, service):
        """Should delete by source name and report whether anything was removed."""
        service.upsert_override("UConn", "Connecticut")

        assert service.delete_override("UConn") is True
        assert service.delete_override("UConn") is False
        assert service.list_overrides() == []


class TestProviderAliases:
    """Test suite for provider alias management."""

    def test_creates_row_for_canonical_team(self, service, db_session):
        """Should create a row keyed by the canonical name when none exists."""
        service.set_provider_alias("St. John's", Provider.SBR, "St. John's (NY)")

        row = db_session.query(TeamOverride).one()
        assert row.source_name == "St. John's"
        assert row.sbr_name == "St. John's (NY)"
        assert row.source == "alias-mapping"

    def test_updates_existing_row(self, service, db_session):
        """Should set the alias on the existing row for the canonical team."""
        service.upsert_override("UConn", "Connecticut")

        service.set_provider_alias("Connecticut", Provider.ESPN, "UConn Huskies")

        row = db_session.query(TeamOverride).one()
        assert row.source_name == "UConn"
        assert row.espn_name == "UConn Huskies"

    def test_provider_aliases_map(self, service):
        """Should map lowercased aliases to canonical names for one provider."""
        service.set_provider_alias("Connecticut", Provider.ODDS_API, "UConn Huskies")
        service.set_provider_alias("St. John's", Provider.SBR, "St. John's (NY)")

        assert service.provider_aliases(Provider.ODDS_API) == {"uconn huskies": "Connecticut"}
        assert service.provider_aliases("sbr") == {"st. john's (ny)": "St. John's"}

    def test_remove_alias(self, service, db_session):
        """Should clear the alias everywhere and return the number of rows changed."""
        service.set_provider_alias("Connecticut", Provider.ODDS_API, "UConn Huskies")

        assert service.remove_provider_alias(Provider.ODDS_API, "UConn Huskies") == 1
        assert service.remove_provider_alias(Provider.ODDS_API, "UConn Huskies") == 0
        assert db_session.query(TeamOverride).one().odds_api_name is None

    def test_alias_requires_values(self, service):
        """Should reject an empty alias."""
        with pytest.raises(OverrideValidationError):
            service.set_provider_alias("Connecticut", Provider.ESPN, "")


class TestSuggestions:
    """Test suite for OverrideService.suggestions."""

    def test_suggests_rated_teams(self, service, db_session):
        """Should rank the season's rated teams by similarity."""
        repo = TeamRatingRepository(db_session)
        repo.replace_season(2026, {
            name: TeamRating(team_name=name, rating=r, initial_rating=r)
            for name, r in [("Connecticut", 20.0), ("Duke", 25.0), ("Kentucky", 18.0)]
        })
        repo.save()

        suggestions = service.suggestions("Conneticut", season=2026, limit=2)

        assert suggestions[0]["team_name"] == "Connecticut"
        assert len(suggestions) == 2
        assert suggestions[0]["score"] >= suggestions[1]["score"]
