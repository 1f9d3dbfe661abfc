"""
Remote Command Executor.

Runs one fully formed shell command on the managed host over SSH.

Every call opens a fresh connection and closes it afterwards; there is no
pooling and no retry. Credentials are taken from the first configured
source in this order:

    1. remote.key_path            (private key file on disk)
    2. SSH_PRIVATE_KEY            (inline key material, SSH_KEY_PASSPHRASE optional)
    3. SSH_PASSWORD

Transport failures (unreachable host, rejected login, connect timeout) raise
RemoteConnectionError. Anything that happens after the command started,
including a non-zero exit or the command timeout, is reported through
CommandResult.

Usage:
    from adminui.backend.remote.executor import get_remote_executor

    result = await get_remote_executor().run("uptime")
    if result.ok:
        print(result.output)
"""

import asyncio
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import asyncssh

from adminui.backend.core.config import get_app_config, get_settings
from adminui.backend.core.exceptions import RemoteConfigurationError, RemoteConnectionError
from adminui.backend.core.logging import get_logger, log_with_source
from adminui.backend.core.utils import truncate

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of a single remote command."""

    command: str
    ok: bool
    exit_status: int | None
    output: str = ""
    error: str = ""
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RemoteExecutor:
    """SSH executor for the managed host described in remote.yaml."""

    def __init__(self, config: Any = None, settings: Any = None) -> None:
        self._config = config or get_app_config().remote
        self._settings = settings or get_settings()

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def use_sudo(self) -> bool:
        return self._config.use_sudo

    def connect_options(self) -> dict[str, Any]:
        """
        Build asyncssh.connect keyword arguments.

        Raises:
            RemoteConfigurationError: No credential source is configured
        """
        config = self._config
        settings = self._settings
        options: dict[str, Any] = {
            "port": config.port,
            "username": config.username,
            "known_hosts": str(Path(config.known_hosts).expanduser()) if config.known_hosts else None,
            "connect_timeout": config.connect_timeout_seconds,
            "keepalive_interval": config.keepalive_interval_seconds,
            "agent_path": None,
        }

        passphrase = settings.ssh_key_passphrase or None
        key_file = Path(config.key_path).expanduser() if config.key_path else None

        if key_file is not None and key_file.is_file():
            options["client_keys"] = [str(key_file)]
            options["passphrase"] = passphrase
            options["credential"] = "key_file"
        elif settings.ssh_private_key:
            try:
                key = asyncssh.import_private_key(settings.ssh_private_key, passphrase)
            except (asyncssh.KeyImportError, ValueError) as e:
                raise RemoteConfigurationError(f"SSH_PRIVATE_KEY cannot be loaded: {e}") from e
            options["client_keys"] = [key]
            options["credential"] = "inline_key"
        elif settings.ssh_password:
            options["client_keys"] = None
            options["password"] = settings.ssh_password
            options["credential"] = "password"
        else:
            raise RemoteConfigurationError()

        return options

    async def run(self, command: str, timeout: float | None = None) -> CommandResult:
        """
        Run a command on the managed host.

        Args:
            command: Complete shell command line
            timeout: Wall-clock limit in seconds, defaults to remote.command_timeout_seconds

        Returns:
            CommandResult with stdout in ``output`` and stderr in ``error``

        Raises:
            RemoteConfigurationError: No SSH credentials configured
            RemoteConnectionError: Host unreachable or login rejected
        """
        timeout = timeout if timeout is not None else self._config.command_timeout_seconds
        options = self.connect_options()
        credential = options.pop("credential")
        started = time.monotonic()

        try:
            conn = await asyncssh.connect(self._config.host, **options)
        except (OSError, asyncssh.Error, asyncio.TimeoutError) as e:
            logger.warning(
                "Remote connection failed",
                extra={
                    "host": self._config.host,
                    "credential": credential,
                    "error": str(e) or type(e).__name__,
                },
            )
            raise RemoteConnectionError(f"Cannot reach {self._config.host}: {e or type(e).__name__}") from e

        async with conn:
            try:
                completed = await asyncio.wait_for(
                    conn.run(command, check=False, errors="replace"),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                result = CommandResult(
                    command=command,
                    ok=False,
                    exit_status=None,
                    error=f"Command timed out after {int(timeout)}s",
                )
            except asyncssh.Error as e:
                raise RemoteConnectionError(f"SSH session failed: {e}") from e
            else:
                limit = self._config.max_output_chars
                result = CommandResult(
                    command=command,
                    ok=completed.exit_status == 0,
                    exit_status=completed.exit_status,
                    output=truncate(completed.stdout, limit),
                    error=truncate(completed.stderr, limit),
                )

        result.duration_ms = int((time.monotonic() - started) * 1000)
        log_with_source(
            logger,
            "remote",
            "info" if result.ok else "warning",
            "Remote command finished",
            command=command,
            exit_status=result.exit_status,
            duration_ms=result.duration_ms,
        )
        return result


_executor: RemoteExecutor | None = None


def get_remote_executor() -> RemoteExecutor:
    """Get or create the executor singleton (FastAPI dependency and bot helper)."""
    global _executor
    if _executor is None:
        _executor = RemoteExecutor()
    return _executor
