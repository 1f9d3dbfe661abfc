"""
Base Service.

Services hold the business rules: they combine repositories, the audit
log and the remote executor, and translate storage failures into
ApplicationError subclasses so endpoints and bot handlers never see
SQLAlchemy exceptions.
"""

from collections.abc import Awaitable
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adminui.backend.core.exceptions import ConflictError, DatabaseError
from adminui.backend.core.logging import get_logger

T = TypeVar("T")


class BaseService:
    """Session holder with database error mapping and per-service logging."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._logger = get_logger(type(self).__module__)

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def _execute_db_operation(self, operation: str, coro: Awaitable[T]) -> T:
        """
        Await a repository call, mapping database errors.

        Raises:
            ConflictError: Unique constraint violated (duplicate key, credential id)
            DatabaseError: Any other database failure
        """
        try:
            return await coro
        except IntegrityError as e:
            self._logger.warning("Database integrity error", extra={"operation": operation, "error": str(e)})
            if "unique" in str(e).lower():
                raise ConflictError("Resource already exists")
            raise DatabaseError(f"Database constraint violation: {operation}")
        except SQLAlchemyError as e:
            self._logger.error("Database error", extra={"operation": operation, "error": str(e)})
            raise DatabaseError(f"Database operation failed: {operation}")

    def _log_operation(self, message: str, **context: Any) -> None:
        self._logger.info(message, extra={"service": type(self).__name__, **context})

    def _log_debug(self, message: str, **context: Any) -> None:
        self._logger.debug(message, extra={"service": type(self).__name__, **context})
