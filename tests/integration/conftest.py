"""
Integration Test Fixtures.

The real application with an in-memory database. Only the SSH executor
is replaced, by FakeExecutor, which records every command line it is
asked to run.
"""

from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from adminui.backend.core.security import create_access_token
from adminui.backend.remote.executor import CommandResult, get_remote_executor


class FakeExecutor:
    """
    Stand-in for RemoteExecutor.

    Commands succeed with empty output unless a canned response matches a
    fragment of the command line. Set ``error`` to make every call raise.
    """

    host = "203.0.113.10"
    use_sudo = False

    def __init__(self) -> None:
        self.commands: list[str] = []
        self.responses: list[tuple[str, CommandResult]] = []
        self.error: Exception | None = None

    def respond(
        self,
        fragment: str,
        output: str = "",
        ok: bool = True,
        exit_status: int | None = 0,
        error: str = "",
    ) -> None:
        self.responses.append(
            (fragment, CommandResult(command=fragment, ok=ok, exit_status=exit_status, output=output, error=error))
        )

    async def run(self, command: str, timeout: float | None = None) -> CommandResult:
        self.commands.append(command)
        if self.error is not None:
            raise self.error
        for fragment, canned in self.responses:
            if fragment in command:
                return CommandResult(
                    command=command,
                    ok=canned.ok,
                    exit_status=canned.exit_status,
                    output=canned.output,
                    error=canned.error,
                )
        return CommandResult(command=command, ok=True, exit_status=0)


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def app(use_test_database, fake_executor: FakeExecutor) -> Generator[FastAPI, None, None]:
    from adminui.backend.main import create_app

    application = create_app()
    application.dependency_overrides[get_remote_executor] = lambda: fake_executor
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Bearer header for the operator ``admin``, as issued after an SSH login."""
    token, _, _ = create_access_token("admin", "ssh")
    return {"Authorization": f"Bearer {token}"}


class ApiAssertions:
    """Checks for the ``{success, data, error, metadata}`` envelope every endpoint returns."""

    @staticmethod
    def _envelope(response: Any, status: int) -> dict[str, Any]:
        assert response.status_code == status, f"expected HTTP {status}, got {response.status_code}: {response.text}"
        return response.json()

    def assert_success(self, response: Any, expected_status: int = 200) -> dict[str, Any]:
        body = self._envelope(response, expected_status)
        assert body.get("success") is True, f"not a success envelope: {body}"
        return body

    def assert_error(self, response: Any, expected_status: int, expected_code: str | None = None) -> dict[str, Any]:
        body = self._envelope(response, expected_status)
        assert body.get("success") is False, f"not an error envelope: {body}"
        assert body.get("error") is not None, f"error details missing: {body}"
        if expected_code:
            assert body["error"].get("code") == expected_code, f"expected {expected_code}, got {body['error']}"
        return body


@pytest.fixture
def api() -> ApiAssertions:
    return ApiAssertions()
