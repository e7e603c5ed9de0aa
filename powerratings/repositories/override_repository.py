"""
Team override repository.

``source_name`` is unique, so writes are upserts keyed on it. Provider
alias lookups (``odds_api_name``, ``espn_name``, ``sbr_name``) are
case-sensitive here; callers that need case-insensitive matching go
through ``OverrideTable``.
"""
from typing import List, Optional

from powerratings.models import TeamOverride
from powerratings.repositories.base import BaseRepository
from powerratings.services.ratings.types import Provider

PROVIDER_COLUMNS = {
    Provider.ODDS_API: "odds_api_name",
    Provider.ESPN: "espn_name",
    Provider.SBR: "sbr_name",
}


class TeamOverrideRepository(BaseRepository[TeamOverride]):

    def __init__(self, db):
        super().__init__(TeamOverride, db)

    def find_all_ordered(self) -> List[TeamOverride]:
        return self.query().order_by(TeamOverride.canonical_name, TeamOverride.source_name).all()

    def find_by_source_name(self, source_name: str) -> Optional[TeamOverride]:
        return self.where_first(TeamOverride.source_name == source_name)

    def find_by_canonical(self, canonical_name: str) -> List[TeamOverride]:
        return self.where(TeamOverride.canonical_name == canonical_name)

    def find_by_alias(self, provider: Provider, alias: str) -> List[TeamOverride]:
        column = getattr(TeamOverride, PROVIDER_COLUMNS[provider])
        return self.where(column == alias)

    def upsert(self, source_name: str, **fields) -> TeamOverride:
        """Insert or update the row for ``source_name``. Does not commit."""
        record = self.find_by_source_name(source_name)
        if record is None:
            return self.create(source_name=source_name, **fields)
        for key, value in fields.items():
            setattr(record, key, value)
        return record

    def delete_by_source_name(self, source_name: str) -> bool:
        record = self.find_by_source_name(source_name)
        if record is None:
            return False
        self.db.delete(record)
        return True
