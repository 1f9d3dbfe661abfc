"""
SQLite access through SQLAlchemy's async engine (aiosqlite driver).

The engine is created on first use, so importing models or services
never opens the database file. Schema changes are additive only:
create_all for new tables, LATE_COLUMNS for columns that older database
files are missing.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession, async_sessionmaker, create_async_engine

from adminui.backend.core.logging import get_logger

logger = get_logger(__name__)

_engine: Any = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None

# (table, column, column definition) for columns introduced after the first release
LATE_COLUMNS: list[tuple[str, str, str]] = [
    ("activity_logs", "outcome", "VARCHAR(16) NOT NULL DEFAULT 'succeeded'"),
    ("activity_logs", "result", "TEXT"),
    ("user_settings", "collapsed_cards", "TEXT"),
]


def get_engine() -> Any:
    global _engine
    if _engine is None:
        from adminui.backend.core.config import get_app_config, get_database_url

        settings = get_app_config().database
        _engine = create_async_engine(get_database_url(), echo=settings.echo)
        logger.debug("Database engine created", extra={"path": settings.path})
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _async_session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency: one session per request.

    Commits when the endpoint returns, rolls back if it raises. Audit
    rows written through ActivityService.track are committed earlier
    and survive the rollback.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def _column_names(conn: AsyncConnection, table: str) -> set[str]:
    rows = (await conn.execute(text(f"PRAGMA table_info({table})"))).fetchall()
    return {row[1] for row in rows}


async def add_missing_columns(conn: AsyncConnection) -> list[str]:
    """
    ALTER old tables to carry every column in LATE_COLUMNS.

    Tables that do not exist are skipped; create_all makes them whole.

    Returns:
        ``table.column`` for each column added
    """
    added: list[str] = []
    for table, column, definition in LATE_COLUMNS:
        present = await _column_names(conn, table)
        if present and column not in present:
            await conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {definition}"))
            added.append(f"{table}.{column}")

    if added:
        logger.info("Database upgraded", extra={"columns": added})
    return added


async def init_db(engine: Any = None) -> None:
    """Create missing tables and columns. Run on every startup."""
    from adminui.backend.models import Base

    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await add_missing_columns(conn)
    logger.debug("Database schema ready")


async def dispose_engine() -> None:
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None
