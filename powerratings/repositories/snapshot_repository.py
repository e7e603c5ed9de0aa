"""
Ratings snapshot repository. Snapshots are insert-only.
"""
from typing import List, Optional

from powerratings.models import RatingsSnapshotRecord
from powerratings.repositories.base import BaseRepository
from powerratings.services.ratings.types import RatingsSnapshot
from powerratings.utils.timezone import to_db


class SnapshotRepository(BaseRepository[RatingsSnapshotRecord]):

    def __init__(self, db):
        super().__init__(RatingsSnapshotRecord, db)

    def add_snapshot(self, snapshot: RatingsSnapshot) -> RatingsSnapshotRecord:
        payload = snapshot.to_dict()
        return self.create(
            season=snapshot.season,
            as_of_date=to_db(snapshot.as_of_date),
            hca=snapshot.hca,
            closing_source=snapshot.closing_source.value,
            games_processed=snapshot.games_processed,
            ratings=payload["ratings"],
            adjustments=payload["adjustments"],
        )

    def latest(self, season: int) -> Optional[RatingsSnapshotRecord]:
        """The current snapshot is the newest by as-of date."""
        return self.query().filter(
            RatingsSnapshotRecord.season == season
        ).order_by(
            RatingsSnapshotRecord.as_of_date.desc(),
            RatingsSnapshotRecord.created_at.desc(),
        ).first()

    def list_recent(self, season: int, limit: int = 20) -> List[RatingsSnapshotRecord]:
        return self.query().filter(
            RatingsSnapshotRecord.season == season
        ).order_by(RatingsSnapshotRecord.as_of_date.desc()).limit(limit).all()
