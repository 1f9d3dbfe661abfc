"""
Server Service.

Everything the panel and the bot do on the managed host. Read-only
queries run a plan and parse its output; state-changing actions go
through ActivityService.track so each one leaves an audit row.

Validation (whitelist lookup, service names, script paths, PIDs) happens
while building the plan, before any SSH connection is opened.
"""

import asyncio
import shlex

from sqlalchemy.ext.asyncio import AsyncSession

from adminui.backend.core.config import get_app_config
from adminui.backend.core.exceptions import AuthorizationError, ExternalServiceError, NotFoundError
from adminui.backend.models.activity import ActivityLog
from adminui.backend.models.credentials import SshKey
from adminui.backend.remote import commands, parsers
from adminui.backend.remote.commands import CommandPlan
from adminui.backend.remote.executor import CommandResult, RemoteExecutor
from adminui.backend.repositories.credentials import SshKeyRepository
from adminui.backend.repositories.user import UserRepository
from adminui.backend.schemas.server import (
    CommandOutcome,
    PortInfo,
    ProcessInfo,
    ScreenAttachInfo,
    ScreenSession,
    ScriptInfo,
    ServerStatus,
    ServicesResponse,
    SshKeyDeleteResult,
)
from adminui.backend.services.activity import ActivityService
from adminui.backend.services.base import BaseService


def to_outcome(result: CommandResult) -> CommandOutcome:
    return CommandOutcome(
        ok=result.ok,
        exit_status=result.exit_status,
        output=result.output,
        error=result.error,
    )


class ServerService(BaseService):
    """
    Operations on the managed host on behalf of one operator.

    Args:
        session: Database session for audit rows and SSH keys
        executor: Remote executor
        username: Operator name recorded in the audit log
        ip_address: Client address recorded in the audit log
    """

    def __init__(
        self,
        session: AsyncSession,
        executor: RemoteExecutor,
        username: str,
        ip_address: str | None = None,
    ) -> None:
        super().__init__(session)
        self.executor = executor
        self.username = username
        self.ip_address = ip_address
        self.activity = ActivityService(session)
        self.ssh_keys = SshKeyRepository(session)
        self.users = UserRepository(session)
        self.remote = get_app_config().remote

    async def _run(
        self,
        plan: CommandPlan,
        sudo: bool = False,
        timeout: float | None = None,
    ) -> CommandResult:
        command = plan.render(sudo=sudo or self.executor.use_sudo)
        self._log_debug("Running plan", action=plan.action, command=command)
        return await self.executor.run(command, timeout=timeout)

    async def _audited(
        self,
        plan: CommandPlan,
        details: str,
        sudo: bool = False,
        timeout: float | None = None,
    ) -> CommandOutcome:
        result = await self.activity.track(
            self.username,
            plan.action,
            details,
            self.ip_address,
            lambda: self._run(plan, sudo=sudo, timeout=timeout),
        )
        return to_outcome(result)

    # -------------------------------------------------------------------------
    # Read-only queries
    # -------------------------------------------------------------------------

    async def status(self) -> ServerStatus:
        """Host snapshot; ``online`` is false when the host cannot be reached."""
        try:
            result = await self._run(commands.status_plan())
        except ExternalServiceError as e:
            return ServerStatus(online=False, host=self.executor.host, error=e.message)
        if not result.ok and not result.output:
            return ServerStatus(online=True, host=self.executor.host, error=result.error or "Status probe failed")
        return parsers.parse_status(result.output, self.executor.host)

    async def services(self) -> ServicesResponse:
        # Both calls settle before a failure is raised
        results = await asyncio.gather(
            self._run(commands.services_plan(self.remote.allowed_services)),
            self._run(commands.pm2_plan()),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        units_result, pm2_result = results
        services = parsers.parse_systemctl_units(units_result.output)
        pm2 = parsers.parse_pm2_jlist(pm2_result.output) if pm2_result.ok else None
        return ServicesResponse(services=services + (pm2 or []), pm2_available=pm2 is not None)

    async def ports(self) -> list[PortInfo]:
        result = await self._run(commands.ports_plan())
        return parsers.parse_ports(result.output)

    async def processes(self, limit: int = 30) -> list[ProcessInfo]:
        result = await self._run(commands.processes_plan())
        return parsers.parse_processes(result.output, limit)

    async def scripts(self) -> list[ScriptInfo]:
        result = await self._run(commands.scripts_plan(self.remote.script_directories))
        return parsers.parse_script_listing(result.output)

    async def screen_sessions(self) -> list[ScreenSession]:
        result = await self._run(commands.screen_list_plan())
        return parsers.parse_screen_sessions(result.output)

    # -------------------------------------------------------------------------
    # Audited actions
    # -------------------------------------------------------------------------

    async def execute(self, command: str, args: list | None = None) -> CommandOutcome:
        """Run a whitelisted operation by name."""
        plan = commands.resolve_action(command, [str(a) for a in args or []])
        details = " ".join([command, *[str(a) for a in args or []]])
        return await self._audited(plan, details)

    async def firewall(self, port: int | str, rule_action: str, protocol: str | None = None) -> CommandOutcome:
        plan = commands.firewall_plan(port, rule_action, protocol)
        return await self._audited(plan, f"{rule_action} {port}/{protocol or 'any'}")

    async def manage_service(self, kind: str, name: str, action: str) -> CommandOutcome:
        plan = commands.manage_service_plan(kind, name, action, self.remote.allowed_services)
        return await self._audited(plan, f"{kind} {action} {name}")

    async def kill_process(self, pid: int | str, signal: int | str | None = None) -> CommandOutcome:
        plan = commands.kill_plan(pid, signal)
        return await self._audited(plan, shlex.join(plan.steps[0].argv))

    async def execute_script(self, script_path: str, use_sudo: bool = False) -> CommandOutcome:
        plan = commands.execute_script_plan(script_path, self.remote.script_directories)
        return await self._audited(plan, plan.steps[0].argv[-1], sudo=use_sudo)

    async def terminal(self, command: str) -> CommandOutcome:
        """
        Run an operator-typed command line as is.

        Raises:
            AuthorizationError: Terminal disabled by features.terminal_enabled
        """
        if not get_app_config().features.terminal_enabled:
            raise AuthorizationError("Terminal is disabled", code="FEATURE_DISABLED")

        timeout = self.remote.terminal_timeout_seconds
        result = await self.activity.track(
            self.username,
            "terminal",
            command,
            self.ip_address,
            lambda: self.executor.run(command, timeout=timeout),
        )
        return to_outcome(result)

    async def manage_screen(self, session: str, action: str) -> CommandOutcome | ScreenAttachInfo:
        """Stop or restart a screen session; ``attach`` returns the command to attach from a shell."""
        if action == "attach":
            name = commands.validate_screen_session(session)
            target = f"{self.remote.username}@{self.remote.host}"
            ssh = ["ssh", "-t", target]
            if self.remote.port != 22:
                ssh += ["-p", str(self.remote.port)]
            return ScreenAttachInfo(session=name, command=shlex.join([*ssh, "screen", "-r", name]))

        plan = commands.screen_manage_plan(session, action)
        return await self._audited(plan, f"{action} {session}")

    # -------------------------------------------------------------------------
    # SSH keys
    # -------------------------------------------------------------------------

    async def list_ssh_keys(self) -> list[SshKey]:
        return await self.ssh_keys.list_all()

    async def add_ssh_key(self, public_key: str, comment: str | None = None) -> tuple[SshKey | None, CommandOutcome]:
        """
        Install a key in authorized_keys, then store it.

        The key is stored only when the remote write succeeded.
        """
        key_type, body, key_comment = commands.parse_public_key(public_key)
        comment = comment or key_comment
        line = " ".join(part for part in (key_type, body, comment) if part)

        plan = commands.authorized_key_add_plan(line, self.remote.authorized_keys_path)
        outcome = await self._audited(plan, f"{key_type} {body[:16]}... {comment or ''}".strip())
        if not outcome.ok:
            return None, outcome

        await self.users.ensure(self.username)
        stored = await self._execute_db_operation(
            "store ssh key",
            self.ssh_keys.create(username=self.username, public_key=line, comment=comment),
        )
        return stored, outcome

    async def delete_ssh_key(self, key_id: str) -> SshKeyDeleteResult:
        """
        Remove a stored key from authorized_keys and from the database.

        Raises:
            NotFoundError: Unknown key id
        """
        key = await self.ssh_keys.get_by_id_or_none(key_id)
        if key is None:
            raise NotFoundError("SSH key not found")

        plan = commands.authorized_key_remove_plan(key.public_key, self.remote.authorized_keys_path)
        outcome = await self._audited(plan, f"{key.public_key[:40]}...")
        if outcome.ok:
            await self.ssh_keys.delete(key_id)
        return SshKeyDeleteResult(id=key_id, removed_from_host=outcome.ok, outcome=outcome)

    # -------------------------------------------------------------------------
    # Audit views
    # -------------------------------------------------------------------------

    async def logs(self, limit: int = 50) -> list[ActivityLog]:
        return await self.activity.recent(limit)

    async def notifications(self, limit: int = 20) -> list[ActivityLog]:
        return await self.activity.recent_failures(limit)
