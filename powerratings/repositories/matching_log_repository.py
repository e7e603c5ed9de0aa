"""
Matching log repository: one row per game per recalculation run.
"""
from typing import Dict, List

from sqlalchemy import func

from powerratings.models import MatchingLog
from powerratings.repositories.base import BaseRepository


class MatchingLogRepository(BaseRepository[MatchingLog]):

    def __init__(self, db):
        super().__init__(MatchingLog, db)

    def find_by_run(self, run_id: str) -> List[MatchingLog]:
        return self.query().filter(MatchingLog.run_id == run_id).order_by(MatchingLog.game_date).all()

    def status_counts(self, run_id: str) -> Dict[str, int]:
        rows = self.db.query(MatchingLog.status, func.count(MatchingLog.id)).filter(
            MatchingLog.run_id == run_id
        ).group_by(MatchingLog.status).all()
        return {status: count for status, count in rows}
