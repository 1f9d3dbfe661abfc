"""
Backend access for handlers.

Handlers run outside FastAPI's dependency injection, so they open their
own database session and build services here. Actions taken from the bot
are audited as ``telegram:<user id>``.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from aiogram.types import User

from adminui.backend.core.database import get_db_session
from adminui.backend.remote.executor import get_remote_executor
from adminui.backend.services.server import ServerService

AUDIT_SOURCE = "telegram"

db_session = asynccontextmanager(get_db_session)


def audit_username(user: User) -> str:
    return f"telegram:{user.id}"


@asynccontextmanager
async def server_service(user: User) -> AsyncIterator[ServerService]:
    """ServerService acting for ``user``; commits when the block exits cleanly."""
    async with db_session() as session:
        yield ServerService(
            session,
            get_remote_executor(),
            audit_username(user),
            ip_address=AUDIT_SOURCE,
        )
