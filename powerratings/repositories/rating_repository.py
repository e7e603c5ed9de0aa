"""
Team rating repository.

Usage:
    repo = TeamRatingRepository(db)
    ratings = repo.load_season(2026)          # {team_name: TeamRating}
    repo.upsert_rating(2026, ratings["Duke"])
"""
from datetime import datetime
from typing import Dict, List, Optional

from powerratings.models import TeamRatingRecord
from powerratings.repositories.base import BaseRepository
from powerratings.services.ratings.types import TeamRating
from powerratings.utils.timezone import ensure_utc, to_db, UTC


class TeamRatingRepository(BaseRepository[TeamRatingRecord]):
    """Repository for per-season team ratings."""

    def __init__(self, db):
        super().__init__(TeamRatingRecord, db)

    @staticmethod
    def to_domain(record: TeamRatingRecord) -> TeamRating:
        return TeamRating(
            team_name=record.team_name,
            rating=record.rating,
            initial_rating=record.initial_rating,
            games_processed=record.games_processed or 0,
            last_updated=ensure_utc(record.last_updated) if record.last_updated else None,
            source_name=record.source_name,
            conference=record.conference,
            alternate_names=dict(record.alternate_names or {}),
        )

    def find_by_season(self, season: int) -> List[TeamRatingRecord]:
        return self.query().filter(
            TeamRatingRecord.season == season
        ).order_by(TeamRatingRecord.rating.desc()).all()

    def find_team(self, season: int, team_name: str) -> Optional[TeamRatingRecord]:
        return self.where_first(
            TeamRatingRecord.season == season,
            TeamRatingRecord.team_name == team_name,
        )

    def load_season(self, season: int) -> Dict[str, TeamRating]:
        """All ratings for a season keyed by canonical team name."""
        return {r.team_name: self.to_domain(r) for r in self.find_by_season(season)}

    def upsert_rating(self, season: int, rating: TeamRating) -> TeamRatingRecord:
        """Insert or overwrite one team's rating. Does not commit."""
        record = self.find_team(season, rating.team_name)
        last_updated = to_db(rating.last_updated or datetime.now(UTC))
        if record is None:
            return self.create(
                season=season,
                team_name=rating.team_name,
                source_name=rating.source_name,
                alternate_names=rating.alternate_names or None,
                conference=rating.conference,
                rating=rating.rating,
                initial_rating=rating.initial_rating,
                games_processed=rating.games_processed,
                last_updated=last_updated,
            )

        record.rating = rating.rating
        record.games_processed = rating.games_processed
        record.last_updated = last_updated
        if rating.conference:
            record.conference = rating.conference
        return record

    def replace_season(self, season: int, ratings: Dict[str, TeamRating]) -> int:
        """
        Drop every rating of a season and insert ``ratings`` in its place.

        Used when (re)seeding a season. Does not commit.
        """
        self.query().filter(TeamRatingRecord.season == season).delete(synchronize_session=False)
        for rating in ratings.values():
            self.create(
                season=season,
                team_name=rating.team_name,
                source_name=rating.source_name,
                alternate_names=rating.alternate_names or None,
                conference=rating.conference,
                rating=rating.rating,
                initial_rating=rating.initial_rating,
                games_processed=rating.games_processed,
                last_updated=to_db(rating.last_updated or datetime.now(UTC)),
            )
        return len(ratings)
