"""
Server Schemas.

Pydantic schemas for the managed-host API: requests, parsed command output
and command outcomes.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CommandOutcome(BaseModel):
    """Result of a remote action. Returned with HTTP 200 whether or not the command succeeded."""

    ok: bool = Field(description="True when the command exited with status 0")
    exit_status: int | None = Field(default=None, description="Exit status, null on timeout")
    output: str = Field(default="", description="Standard output")
    error: str = Field(default="", description="Standard error or timeout message")


# =============================================================================
# Status
# =============================================================================


class ServerStatus(BaseModel):
    """Snapshot of the managed host."""

    online: bool
    host: str
    uptime_seconds: int | None = None
    uptime: str = "N/A"
    load_average: list[float] = Field(default_factory=list)
    cpu_count: int | None = None
    memory_total: int | None = None
    memory_used: int | None = None
    memory_percent: float | None = None
    disk_total: int | None = None
    disk_used: int | None = None
    disk_percent: float | None = None
    error: str | None = None


# =============================================================================
# Services
# =============================================================================


class ServiceInfo(BaseModel):
    name: str
    type: Literal["systemd", "pm2"]
    running: bool
    state: str
    description: str | None = None
    pid: int | None = None
    cpu: float | None = None
    memory: int | None = None
    restarts: int | None = None


class ServicesResponse(BaseModel):
    services: list[ServiceInfo]
    pm2_available: bool


class ManageServiceRequest(BaseModel):
    """Start, stop or restart a systemd unit or PM2 process."""

    type: Literal["systemd", "pm2"] = Field(default="systemd", description="Service manager")
    name: str = Field(..., min_length=1, max_length=128, examples=["nginx"])
    action: Literal["start", "stop", "restart"]


# =============================================================================
# Ports and processes
# =============================================================================


class PortInfo(BaseModel):
    protocol: str
    state: str
    local_address: str
    port: int
    process: str | None = None
    pid: int | None = None


class ProcessInfo(BaseModel):
    pid: int
    user: str
    cpu: float
    memory: float
    command: str
    args: str


class KillProcessRequest(BaseModel):
    pid: int = Field(..., gt=1, description="Process id")
    signal: str | int = Field(default="TERM", description="HUP, INT, KILL, TERM or 1, 2, 9, 15")


# =============================================================================
# Commands, scripts, terminal
# =============================================================================


class ExecuteRequest(BaseModel):
    """Run a whitelisted operation."""

    command: str = Field(..., min_length=1, max_length=64, examples=["check-disk"])
    args: list[str | int] = Field(default_factory=list, max_length=3, examples=[["8080", "allow", "tcp"]])


class ScriptInfo(BaseModel):
    path: str
    name: str
    directory: str


class ExecuteScriptRequest(BaseModel):
    script_path: str = Field(..., min_length=1, max_length=1024)
    use_sudo: bool = False


class TerminalRequest(BaseModel):
    command: str = Field(..., min_length=1, max_length=2000)


# =============================================================================
# Screen sessions
# =============================================================================


class ScreenSession(BaseModel):
    id: str = Field(description="Full session id, <pid>.<name>")
    pid: int
    name: str
    state: str
    started: str | None = None


class ScreenManageRequest(BaseModel):
    session_name: str = Field(..., min_length=3, max_length=80, examples=["12345.worker"])
    action: Literal["stop", "restart", "attach"]


class ScreenAttachInfo(BaseModel):
    session: str
    command: str


# =============================================================================
# SSH keys
# =============================================================================


class SshKeyCreate(BaseModel):
    public_key: str = Field(..., min_length=16, max_length=16384)
    comment: str | None = Field(default=None, max_length=255)


class SshKeyResponse(BaseModel):
    id: str
    username: str
    public_key: str
    comment: str | None
    added_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SshKeyAddResult(BaseModel):
    """Stored key (null when the remote write failed) and the remote outcome."""

    key: SshKeyResponse | None = None
    outcome: CommandOutcome


class SshKeyDeleteResult(BaseModel):
    id: str
    removed_from_host: bool
    outcome: CommandOutcome | None = None


# =============================================================================
# Activity log
# =============================================================================


class ActivityLogResponse(BaseModel):
    id: str
    username: str
    action: str
    details: str | None
    ip_address: str | None
    timestamp: datetime
    outcome: str
    result: str | None

    model_config = ConfigDict(from_attributes=True)
