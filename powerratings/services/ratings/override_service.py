"""
Operator workflows for team name overrides.

Two kinds of write:

- ``upsert_override``: bind an external spelling (``source_name``) to a
  canonical team, optionally with the spelling each provider uses.
- ``set_provider_alias``: record how one provider spells a canonical team
  (e.g. the SBR odds screen calls "St. John's" "St. John's (NY)").

Both are last-write-wins. A provider alias can only belong to one row:
before it is written, every other row holding it is cleared, and each
cleared binding is logged at WARNING so the change can be audited.
"""
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from powerratings.core.config import settings
from powerratings.core.exceptions import OverrideValidationError
from powerratings.core.logging import get_logger
from powerratings.models import TeamOverride
from powerratings.repositories import TeamOverrideRepository, TeamRatingRepository
from powerratings.repositories.override_repository import PROVIDER_COLUMNS
from powerratings.services.ratings.team_reconciler import OverrideTable, suggest_canonical
from powerratings.services.ratings.types import Provider

logger = get_logger(__name__)


class OverrideService:
    """Read and write the override store."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TeamOverrideRepository(db)

    def list_overrides(self) -> List[TeamOverride]:
        return self.repo.find_all_ordered()

    def get_override(self, source_name: str) -> Optional[TeamOverride]:
        return self.repo.find_by_source_name(source_name)

    def load_table(self) -> OverrideTable:
        """Snapshot of the store for one batch of matching."""
        return OverrideTable.from_records(self.repo.find_all_ordered())

    def _clear_alias_elsewhere(self, provider: Provider, alias: str, keep_source_name: Optional[str]) -> int:
        column = PROVIDER_COLUMNS[provider]
        cleared = 0
        for row in self.repo.find_by_alias(provider, alias):
            if row.source_name == keep_source_name:
                continue
            logger.warning(
                f"Clearing {column}='{alias}' from override '{row.source_name}' "
                f"(was bound to {row.canonical_name})",
                extra={"provider": provider.value, "alias": alias, "cleared_source_name": row.source_name},
            )
            setattr(row, column, None)
            cleared += 1
        return cleared

    def upsert_override(
        self,
        source_name: str,
        canonical_name: str,
        espn_name: Optional[str] = None,
        odds_api_name: Optional[str] = None,
        sbr_name: Optional[str] = None,
        source: str = "manual",
        notes: Optional[str] = None,
    ) -> TeamOverride:
        """Create or replace the binding for ``source_name`` and commit."""
        source_name = (source_name or "").strip()
        canonical_name = (canonical_name or "").strip()
        if not source_name or not canonical_name:
            raise OverrideValidationError("source_name and canonical_name are required")

        existing = self.repo.find_by_source_name(source_name)
        if existing is not None and existing.canonical_name != canonical_name:
            logger.warning(
                f"Rebinding '{source_name}' from {existing.canonical_name} to {canonical_name}",
                extra={"source_name": source_name, "previous": existing.canonical_name},
            )

        aliases = {Provider.ESPN: espn_name, Provider.ODDS_API: odds_api_name, Provider.SBR: sbr_name}
        for provider, alias in aliases.items():
            if alias:
                self._clear_alias_elsewhere(provider, alias, keep_source_name=source_name)

        fields = {"canonical_name": canonical_name, "source": source}
        for provider, alias in aliases.items():
            if alias is not None:
                fields[PROVIDER_COLUMNS[provider]] = alias or None
        if notes is not None:
            fields["notes"] = notes

        override = self.repo.upsert(source_name, **fields)
        self.repo.save()
        logger.info(f"Saved override '{source_name}' -> {canonical_name}")
        return override

    def delete_override(self, source_name: str) -> bool:
        deleted = self.repo.delete_by_source_name(source_name)
        if deleted:
            self.repo.save()
            logger.info(f"Deleted override '{source_name}'")
        return deleted

    def set_provider_alias(
        self,
        canonical_name: str,
        provider: Provider,
        alias: str,
        source: str = "alias-mapping",
    ) -> TeamOverride:
        """
        Bind ``alias`` as ``provider``'s spelling of ``canonical_name``.

        Sets the alias on an existing row for the canonical team, or creates
        a row keyed by the canonical name when there is none.
        """
        provider = Provider(provider)
        if not canonical_name or not alias:
            raise OverrideValidationError("canonical_name and alias are required")

        column = PROVIDER_COLUMNS[provider]
        rows = self.repo.find_by_canonical(canonical_name)
        target = rows[0] if rows else None

        self._clear_alias_elsewhere(provider, alias, keep_source_name=target.source_name if target else None)

        if target is None:
            target = self.repo.create(
                source_name=canonical_name,
                canonical_name=canonical_name,
                source=source,
                **{column: alias},
            )
        else:
            setattr(target, column, alias)

        self.repo.save()
        logger.info(f"Mapped {provider.value} name '{alias}' -> {canonical_name}")
        return target

    def remove_provider_alias(self, provider: Provider, alias: str) -> int:
        """Clear ``alias`` from every row; returns the number of rows changed."""
        provider = Provider(provider)
        cleared = self._clear_alias_elsewhere(provider, alias, keep_source_name=None)
        if cleared:
            self.repo.save()
        return cleared

    def provider_aliases(self, provider: Provider) -> Dict[str, str]:
        """alias (lowercased) -> canonical name for one provider."""
        provider = Provider(provider)
        return {
            binding.alias_for(provider).lower(): binding.canonical_name
            for binding in self.load_table()
            if binding.alias_for(provider)
        }

    def suggestions(self, name: str, season: Optional[int] = None, limit: int = 5):
        """Canonical names that look like ``name``, best first."""
        season = season or settings.RATINGS_SEASON
        keys = [r.team_name for r in TeamRatingRepository(self.db).find_by_season(season)]
        return [{"team_name": team, "score": score} for team, score in suggest_canonical(name, keys, limit)]
