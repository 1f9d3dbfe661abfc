"""
Settings Service.

Per-operator dashboard layout. Values are stored as JSON text and handed
back unchanged; unreadable stored JSON is returned as null.
"""

import json
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from adminui.backend.repositories.user_settings import UserSettingsRepository
from adminui.backend.schemas.settings import UserSettingsPayload, UserSettingsResponse
from adminui.backend.services.base import BaseService

FIELDS = ("card_layouts", "card_heights", "collapsed_cards")


def _load(text: str | None) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


class SettingsService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = UserSettingsRepository(session)

    async def get(self, username: str) -> UserSettingsResponse:
        row = await self.repo.get_by_id_or_none(username)
        if row is None:
            return UserSettingsResponse(username=username)
        return UserSettingsResponse(
            username=username,
            updated_at=row.updated_at,
            **{name: _load(getattr(row, name)) for name in FIELDS},
        )

    async def save(self, username: str, payload: UserSettingsPayload) -> UserSettingsResponse:
        """Store the supplied fields; omitted fields keep their stored value."""
        values = {
            name: json.dumps(value)
            for name, value in payload.model_dump(exclude_none=True).items()
        }
        await self._execute_db_operation("save user settings", self.repo.upsert(username, **values))
        self._log_debug("User settings saved", username=username, fields=sorted(values))
        return await self.get(username)
