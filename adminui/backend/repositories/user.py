"""
User Repository.
"""

from sqlalchemy import select

from adminui.backend.core.utils import utc_now
from adminui.backend.models.user import User
from adminui.backend.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_username(self, username: str) -> User | None:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def ensure(self, username: str, ssh_public_key: str | None = None) -> User:
        """Return the user, creating it on first sight."""
        user = await self.get_by_username(username)
        if user is None:
            user = await self.create(username=username, ssh_public_key=ssh_public_key)
        return user

    async def record_login(self, username: str, ssh_public_key: str | None = None) -> User:
        """Create the user if needed and stamp last_login."""
        user = await self.ensure(username, ssh_public_key)
        user.last_login = utc_now()
        await self.session.flush()
        return user
