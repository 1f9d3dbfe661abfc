"""
Integration Tests for the Managed-Host Endpoints.

The SSH executor is a FakeExecutor, so these tests see exactly which
command lines would have been sent to the host.
"""

import pytest
from httpx import AsyncClient

from adminui.backend.core.config import get_app_config
from adminui.backend.core.exceptions import RemoteConnectionError

PUBLIC_KEY = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIOpsLaptopKeyBody0123456789abcdef ops@laptop"


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient, api, fake_executor):
        response = await client.get("/api/server/status")

        api.assert_error(response, 401, "AUTH_UNAUTHORIZED")
        assert fake_executor.commands == []

    @pytest.mark.asyncio
    async def test_tampered_token(self, client: AsyncClient, api, auth_headers):
        headers = {"Authorization": auth_headers["Authorization"] + "x"}

        response = await client.post("/api/server/execute", json={"command": "check-disk"}, headers=headers)

        api.assert_error(response, 401)


class TestStatus:
    @pytest.mark.asyncio
    async def test_unreachable_host_is_reported_offline(self, client: AsyncClient, api, auth_headers, fake_executor):
        fake_executor.error = RemoteConnectionError("Connection refused")

        response = await client.get("/api/server/status", headers=auth_headers)

        data = api.assert_success(response)["data"]
        assert data["online"] is False
        assert data["host"] == "203.0.113.10"
        assert data["error"] == "Connection refused"

    @pytest.mark.asyncio
    async def test_unreachable_host_fails_service_listing(self, client: AsyncClient, api, auth_headers, fake_executor):
        fake_executor.error = RemoteConnectionError("Connection refused")

        response = await client.get("/api/server/services", headers=auth_headers)

        api.assert_error(response, 502, "REMOTE_CONNECTION_FAILED")
        assert len(fake_executor.commands) == 2

    @pytest.mark.asyncio
    async def test_processes_limit_is_bounded(self, client: AsyncClient, api, auth_headers):
        response = await client.get("/api/server/processes?limit=1000", headers=auth_headers)

        api.assert_error(response, 422, "VAL_REQUEST_INVALID")


class TestExecute:
    @pytest.mark.asyncio
    async def test_unknown_command_never_reaches_the_host(self, client: AsyncClient, api, auth_headers, fake_executor):
        response = await client.post(
            "/api/server/execute",
            json={"command": "rm-everything"},
            headers=auth_headers,
        )

        api.assert_error(response, 403, "CMD_NOT_ALLOWED")
        assert fake_executor.commands == []

    @pytest.mark.asyncio
    async def test_firewall_rule_is_rendered_and_audited(self, client: AsyncClient, api, auth_headers, fake_executor):
        response = await client.post(
            "/api/server/execute",
            json={"command": "firewall", "args": [8080, "allow", "tcp"]},
            headers=auth_headers,
        )

        assert api.assert_success(response)["data"]["ok"] is True
        assert fake_executor.commands == ["( ufw delete deny 8080/tcp || true ) && ufw allow 8080/tcp"]

        logs = api.assert_success(await client.get("/api/server/logs", headers=auth_headers))["data"]
        assert len(logs) == 1
        assert logs[0]["username"] == "admin"
        assert logs[0]["action"] == "firewall"
        assert logs[0]["details"] == "firewall 8080 allow tcp"
        assert logs[0]["outcome"] == "succeeded"

    @pytest.mark.asyncio
    async def test_bad_firewall_port(self, client: AsyncClient, api, auth_headers, fake_executor):
        response = await client.post(
            "/api/server/execute",
            json={"command": "firewall", "args": ["8080;reboot", "allow"]},
            headers=auth_headers,
        )

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")
        assert fake_executor.commands == []

    @pytest.mark.asyncio
    async def test_failed_command_is_a_notification(self, client: AsyncClient, api, auth_headers, fake_executor):
        fake_executor.respond("df -h", ok=False, exit_status=1, error="df: cannot read table of mounted file systems")

        response = await client.post("/api/server/execute", json={"command": "check-disk"}, headers=auth_headers)

        outcome = api.assert_success(response)["data"]
        assert outcome["ok"] is False
        assert outcome["exit_status"] == 1

        notifications = api.assert_success(
            await client.get("/api/server/notifications", headers=auth_headers)
        )["data"]
        assert [n["action"] for n in notifications] == ["check-disk"]
        assert notifications[0]["outcome"] == "failed"

    @pytest.mark.asyncio
    async def test_connection_failure_is_audited(self, client: AsyncClient, api, auth_headers, fake_executor):
        fake_executor.error = RemoteConnectionError("Host key mismatch")

        response = await client.post("/api/server/execute", json={"command": "check-uptime"}, headers=auth_headers)

        api.assert_error(response, 502, "REMOTE_CONNECTION_FAILED")
        notifications = api.assert_success(
            await client.get("/api/server/notifications", headers=auth_headers)
        )["data"]
        assert notifications[0]["action"] == "check-uptime"
        assert "Host key mismatch" in notifications[0]["result"]


class TestScriptsAndTerminal:
    @pytest.mark.asyncio
    async def test_script_outside_allowed_directories(self, client: AsyncClient, api, auth_headers, fake_executor):
        response = await client.post(
            "/api/server/execute-script",
            json={"script_path": "/opt/scripts/../../etc/shadow"},
            headers=auth_headers,
        )

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")
        assert fake_executor.commands == []

    @pytest.mark.asyncio
    async def test_terminal_runs_command_as_typed(self, client: AsyncClient, api, auth_headers, fake_executor):
        fake_executor.respond("uname -a", output="Linux web-1 6.1.0\n")

        response = await client.post("/api/server/terminal", json={"command": "uname -a"}, headers=auth_headers)

        assert api.assert_success(response)["data"]["output"] == "Linux web-1 6.1.0\n"
        assert fake_executor.commands == ["uname -a"]

    @pytest.mark.asyncio
    async def test_terminal_disabled(self, client: AsyncClient, api, auth_headers, fake_executor, monkeypatch):
        monkeypatch.setattr(get_app_config().features, "terminal_enabled", False)

        response = await client.post("/api/server/terminal", json={"command": "id"}, headers=auth_headers)

        api.assert_error(response, 403, "FEATURE_DISABLED")
        assert fake_executor.commands == []


class TestProcesses:
    @pytest.mark.asyncio
    async def test_kill_init_is_rejected(self, client: AsyncClient, api, auth_headers, fake_executor):
        response = await client.post("/api/server/kill-process", json={"pid": 1}, headers=auth_headers)

        api.assert_error(response, 422, "VAL_REQUEST_INVALID")
        assert fake_executor.commands == []

    @pytest.mark.asyncio
    async def test_service_outside_allow_list(self, client: AsyncClient, api, auth_headers, fake_executor):
        response = await client.post(
            "/api/server/manage-service",
            json={"name": "postgresql", "action": "restart"},
            headers=auth_headers,
        )

        api.assert_error(response, 400)
        assert fake_executor.commands == []


class TestSshKeys:
    @pytest.mark.asyncio
    async def test_add_list_delete(self, client: AsyncClient, api, auth_headers, fake_executor):
        added = api.assert_success(
            await client.post("/api/server/ssh-keys", json={"public_key": PUBLIC_KEY}, headers=auth_headers)
        )["data"]
        assert added["outcome"]["ok"] is True
        assert added["key"]["comment"] == "ops@laptop"
        assert "authorized_keys" in fake_executor.commands[0]

        keys = api.assert_success(await client.get("/api/server/ssh-keys", headers=auth_headers))["data"]
        assert [k["id"] for k in keys] == [added["key"]["id"]]

        deleted = api.assert_success(
            await client.delete(f"/api/server/ssh-keys/{added['key']['id']}", headers=auth_headers)
        )["data"]
        assert deleted["removed_from_host"] is True

        keys = api.assert_success(await client.get("/api/server/ssh-keys", headers=auth_headers))["data"]
        assert keys == []

    @pytest.mark.asyncio
    async def test_key_is_not_stored_when_host_write_fails(self, client: AsyncClient, api, auth_headers, fake_executor):
        fake_executor.respond("authorized_keys", ok=False, exit_status=1, error="Permission denied")

        added = api.assert_success(
            await client.post("/api/server/ssh-keys", json={"public_key": PUBLIC_KEY}, headers=auth_headers)
        )["data"]

        assert added["key"] is None
        assert added["outcome"]["ok"] is False
        keys = api.assert_success(await client.get("/api/server/ssh-keys", headers=auth_headers))["data"]
        assert keys == []

    @pytest.mark.asyncio
    async def test_delete_unknown_key(self, client: AsyncClient, api, auth_headers):
        response = await client.delete("/api/server/ssh-keys/does-not-exist", headers=auth_headers)

        api.assert_error(response, 404, "RES_NOT_FOUND")
