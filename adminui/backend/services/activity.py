"""
Activity Service.

Audit trail for operator actions.

Remote actions are recorded before they run: the row is committed as
``pending``, the action executes, and the row is updated to ``succeeded``
or ``failed`` with a truncated result. A crash in between leaves the
``pending`` row behind.
"""

from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from adminui.backend.core.utils import truncate
from adminui.backend.models.activity import (
    OUTCOME_FAILED,
    OUTCOME_PENDING,
    OUTCOME_SUCCEEDED,
    ActivityLog,
)
from adminui.backend.remote.executor import CommandResult
from adminui.backend.repositories.activity import ActivityLogRepository
from adminui.backend.services.base import BaseService

RESULT_LIMIT = 4000


def summarize(result: CommandResult) -> str:
    """Text stored in activity_logs.result for a command."""
    text = result.output if result.ok else (result.error or result.output)
    return truncate(text.strip(), RESULT_LIMIT)


class ActivityService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = ActivityLogRepository(session)

    async def record(
        self,
        username: str,
        action: str,
        details: str | None = None,
        ip_address: str | None = None,
        outcome: str = OUTCOME_SUCCEEDED,
        result: str | None = None,
    ) -> ActivityLog:
        """Write a finished action (logins, settings changes)."""
        return await self._execute_db_operation(
            "record activity",
            self.repo.create(
                username=username,
                action=action,
                details=details,
                ip_address=ip_address,
                outcome=outcome,
                result=result,
            ),
        )

    async def track(
        self,
        username: str,
        action: str,
        details: str | None,
        ip_address: str | None,
        operation: Callable[[], Awaitable[CommandResult]],
    ) -> CommandResult:
        """
        Record, run, then store the outcome of a remote action.

        Exceptions raised by ``operation`` mark the row failed and propagate.
        """
        entry = await self.record(
            username, action, details, ip_address, outcome=OUTCOME_PENDING
        )
        await self.session.commit()

        try:
            result = await operation()
        except Exception as e:
            await self.repo.set_outcome(entry.id, OUTCOME_FAILED, truncate(str(e), RESULT_LIMIT))
            await self.session.commit()
            raise

        outcome = OUTCOME_SUCCEEDED if result.ok else OUTCOME_FAILED
        await self.repo.set_outcome(entry.id, outcome, summarize(result))
        await self.session.commit()

        self._log_operation(
            "Remote action audited",
            action=action,
            username=username,
            outcome=outcome,
        )
        return result

    async def recent(self, limit: int = 50) -> list[ActivityLog]:
        return await self.repo.recent(limit)

    async def recent_failures(self, limit: int = 20) -> list[ActivityLog]:
        return await self.repo.recent_failed(limit)
