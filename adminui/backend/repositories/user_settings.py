"""
User Settings Repository.
"""

from typing import Any

from adminui.backend.models.user_settings import UserSettings
from adminui.backend.repositories.base import BaseRepository


class UserSettingsRepository(BaseRepository[UserSettings]):
    model = UserSettings

    async def upsert(self, username: str, **values: Any) -> UserSettings:
        """Create or update the row; None values leave the stored column unchanged."""
        values = {k: v for k, v in values.items() if v is not None}
        existing = await self.get_by_id_or_none(username)
        if existing is None:
            return await self.create(username=username, **values)
        return await self.update(username, **values)
