"""
Activity Log Repository.
"""

from sqlalchemy import select

from adminui.backend.models.activity import OUTCOME_FAILED, ActivityLog
from adminui.backend.repositories.base import BaseRepository


class ActivityLogRepository(BaseRepository[ActivityLog]):
    model = ActivityLog

    async def recent(self, limit: int = 50) -> list[ActivityLog]:
        result = await self.session.execute(
            select(ActivityLog).order_by(ActivityLog.timestamp.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def recent_failed(self, limit: int = 20) -> list[ActivityLog]:
        result = await self.session.execute(
            select(ActivityLog)
            .where(ActivityLog.outcome == OUTCOME_FAILED)
            .order_by(ActivityLog.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def set_outcome(self, log_id: str, outcome: str, result: str | None) -> ActivityLog:
        return await self.update(log_id, outcome=outcome, result=result)
