"""
Unit Tests for Base Service.

Database error translation and logging context.
"""

import pytest
from unittest.mock import AsyncMock, patch

from sqlalchemy.exc import IntegrityError, OperationalError

from adminui.backend.core.exceptions import ConflictError, DatabaseError
from adminui.backend.services.base import BaseService


@pytest.fixture
def service():
    return BaseService(AsyncMock())


class TestExecuteDbOperation:
    @pytest.mark.asyncio
    async def test_returns_result(self, service):
        async def load():
            return ["nginx"]

        assert await service._execute_db_operation("load services", load()) == ["nginx"]

    @pytest.mark.asyncio
    async def test_unique_violation_is_conflict(self, service):
        async def insert():
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: ssh_keys.id"))

        with pytest.raises(ConflictError):
            await service._execute_db_operation("add ssh key", insert())

    @pytest.mark.asyncio
    async def test_other_integrity_error(self, service):
        async def insert():
            raise IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed"))

        with pytest.raises(DatabaseError, match="constraint violation: record activity"):
            await service._execute_db_operation("record activity", insert())

    @pytest.mark.asyncio
    async def test_driver_error_is_database_error(self, service):
        async def query():
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        with pytest.raises(DatabaseError, match="operation failed"):
            await service._execute_db_operation("save user settings", query())


def test_log_operation_names_the_service(service):
    with patch.object(service._logger, "info") as mock_info:
        service._log_operation("Operator logged in", username="admin")

    extra = mock_info.call_args.kwargs["extra"]
    assert extra == {"service": "BaseService", "username": "admin"}
