"""
Credential Repositories.

SSH keys and WebAuthn credentials.
"""

from sqlalchemy import select

from adminui.backend.models.credentials import SshKey, WebAuthnCredential
from adminui.backend.repositories.base import BaseRepository


class SshKeyRepository(BaseRepository[SshKey]):
    model = SshKey

    async def list_all(self) -> list[SshKey]:
        result = await self.session.execute(select(SshKey).order_by(SshKey.added_at))
        return list(result.scalars().all())


class WebAuthnCredentialRepository(BaseRepository[WebAuthnCredential]):
    model = WebAuthnCredential

    async def list_for_user(self, username: str) -> list[WebAuthnCredential]:
        result = await self.session.execute(
            select(WebAuthnCredential).where(WebAuthnCredential.username == username)
        )
        return list(result.scalars().all())

    async def get_for_user(self, credential_id: str, username: str) -> WebAuthnCredential | None:
        result = await self.session.execute(
            select(WebAuthnCredential).where(
                WebAuthnCredential.id == credential_id,
                WebAuthnCredential.username == username,
            )
        )
        return result.scalar_one_or_none()
