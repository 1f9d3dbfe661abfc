"""
Server API Endpoints.

Managed-host operations for authenticated operators. Every route resolves
the operator from the Bearer token before its body runs.

Remote actions answer 200 with a CommandOutcome whether or not the command
succeeded; error statuses are reserved for validation (400), auth (401),
whitelist rejection (403) and an unreachable host (502).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from adminui.backend.core.dependencies import ClientIp, CurrentOperator, DbSession, RequestId
from adminui.backend.remote.executor import RemoteExecutor, get_remote_executor
from adminui.backend.schemas.base import ApiResponse, ResponseMetadata
from adminui.backend.schemas.server import (
    ActivityLogResponse,
    CommandOutcome,
    ExecuteRequest,
    ExecuteScriptRequest,
    KillProcessRequest,
    ManageServiceRequest,
    PortInfo,
    ProcessInfo,
    ScreenAttachInfo,
    ScreenManageRequest,
    ScreenSession,
    ScriptInfo,
    ServerStatus,
    ServicesResponse,
    SshKeyAddResult,
    SshKeyCreate,
    SshKeyDeleteResult,
    SshKeyResponse,
    TerminalRequest,
)
from adminui.backend.services.server import ServerService

router = APIRouter()

Executor = Annotated[RemoteExecutor, Depends(get_remote_executor)]


def get_server_service(
    operator: CurrentOperator,
    db: DbSession,
    executor: Executor,
    client_ip: ClientIp,
) -> ServerService:
    return ServerService(db, executor, operator.username, client_ip)


Service = Annotated[ServerService, Depends(get_server_service)]


def _meta(request_id: str) -> ResponseMetadata:
    return ResponseMetadata(request_id=request_id)


# =============================================================================
# Status, services, ports, processes
# =============================================================================


@router.get(
    "/status",
    response_model=ApiResponse[ServerStatus],
    summary="Host status",
    description="Uptime, load, memory and disk. `online` is false when the host cannot be reached.",
)
async def get_status(service: Service, request_id: RequestId) -> ApiResponse[ServerStatus]:
    return ApiResponse(data=await service.status(), metadata=_meta(request_id))


@router.get(
    "/services",
    response_model=ApiResponse[ServicesResponse],
    summary="systemd units and PM2 processes",
)
async def list_services(service: Service, request_id: RequestId) -> ApiResponse[ServicesResponse]:
    return ApiResponse(data=await service.services(), metadata=_meta(request_id))


@router.post(
    "/manage-service",
    response_model=ApiResponse[CommandOutcome],
    summary="Start, stop or restart a service",
)
async def manage_service(
    data: ManageServiceRequest,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[CommandOutcome]:
    outcome = await service.manage_service(data.type, data.name, data.action)
    return ApiResponse(data=outcome, metadata=_meta(request_id))


@router.get(
    "/ports",
    response_model=ApiResponse[list[PortInfo]],
    summary="Listening sockets",
)
async def list_ports(service: Service, request_id: RequestId) -> ApiResponse[list[PortInfo]]:
    return ApiResponse(data=await service.ports(), metadata=_meta(request_id))


@router.get(
    "/processes",
    response_model=ApiResponse[list[ProcessInfo]],
    summary="Top processes by CPU",
)
async def list_processes(
    service: Service,
    request_id: RequestId,
    limit: int = Query(default=30, ge=1, le=200, description="Maximum number of processes"),
) -> ApiResponse[list[ProcessInfo]]:
    return ApiResponse(data=await service.processes(limit), metadata=_meta(request_id))


@router.post(
    "/kill-process",
    response_model=ApiResponse[CommandOutcome],
    summary="Send a signal to a process",
)
async def kill_process(
    data: KillProcessRequest,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[CommandOutcome]:
    outcome = await service.kill_process(data.pid, data.signal)
    return ApiResponse(data=outcome, metadata=_meta(request_id))


# =============================================================================
# Commands, scripts, terminal
# =============================================================================


@router.post(
    "/execute",
    response_model=ApiResponse[CommandOutcome],
    summary="Run a whitelisted operation",
    description="Unknown operation names are rejected with 403 before anything runs on the host.",
)
async def execute(
    data: ExecuteRequest,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[CommandOutcome]:
    outcome = await service.execute(data.command, data.args)
    return ApiResponse(data=outcome, metadata=_meta(request_id))


@router.get(
    "/scripts",
    response_model=ApiResponse[list[ScriptInfo]],
    summary="Shell scripts in the allowed directories",
)
async def list_scripts(service: Service, request_id: RequestId) -> ApiResponse[list[ScriptInfo]]:
    return ApiResponse(data=await service.scripts(), metadata=_meta(request_id))


@router.post(
    "/execute-script",
    response_model=ApiResponse[CommandOutcome],
    summary="Run a script from an allowed directory",
)
async def execute_script(
    data: ExecuteScriptRequest,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[CommandOutcome]:
    outcome = await service.execute_script(data.script_path, data.use_sudo)
    return ApiResponse(data=outcome, metadata=_meta(request_id))


@router.post(
    "/terminal",
    response_model=ApiResponse[CommandOutcome],
    summary="Run an ad-hoc command line",
    description="Disabled with 403 when features.terminal_enabled is false.",
)
async def terminal(
    data: TerminalRequest,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[CommandOutcome]:
    outcome = await service.terminal(data.command)
    return ApiResponse(data=outcome, metadata=_meta(request_id))


# =============================================================================
# Screen sessions
# =============================================================================


@router.get(
    "/screen",
    response_model=ApiResponse[list[ScreenSession]],
    summary="GNU screen sessions",
)
@router.get(
    "/processes/screen",
    response_model=ApiResponse[list[ScreenSession]],
    include_in_schema=False,
)
async def list_screen_sessions(service: Service, request_id: RequestId) -> ApiResponse[list[ScreenSession]]:
    return ApiResponse(data=await service.screen_sessions(), metadata=_meta(request_id))


@router.post(
    "/screen/manage",
    response_model=ApiResponse[CommandOutcome | ScreenAttachInfo],
    summary="Stop, restart or attach to a screen session",
)
async def manage_screen(
    data: ScreenManageRequest,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[CommandOutcome | ScreenAttachInfo]:
    result = await service.manage_screen(data.session_name, data.action)
    return ApiResponse(data=result, metadata=_meta(request_id))


# =============================================================================
# SSH keys
# =============================================================================


@router.get(
    "/ssh-keys",
    response_model=ApiResponse[list[SshKeyResponse]],
    summary="Stored SSH keys",
)
async def list_ssh_keys(service: Service, request_id: RequestId) -> ApiResponse[list[SshKeyResponse]]:
    keys = await service.list_ssh_keys()
    return ApiResponse(
        data=[SshKeyResponse.model_validate(key) for key in keys],
        metadata=_meta(request_id),
    )


@router.post(
    "/ssh-keys",
    response_model=ApiResponse[SshKeyAddResult],
    summary="Install a public key in authorized_keys",
    description="The key is stored only when the remote write succeeded.",
)
async def add_ssh_key(
    data: SshKeyCreate,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[SshKeyAddResult]:
    stored, outcome = await service.add_ssh_key(data.public_key, data.comment)
    result = SshKeyAddResult(
        key=SshKeyResponse.model_validate(stored) if stored is not None else None,
        outcome=outcome,
    )
    return ApiResponse(data=result, metadata=_meta(request_id))


@router.delete(
    "/ssh-keys/{key_id}",
    response_model=ApiResponse[SshKeyDeleteResult],
    summary="Remove a key from authorized_keys and the database",
)
async def delete_ssh_key(
    key_id: str,
    service: Service,
    request_id: RequestId,
) -> ApiResponse[SshKeyDeleteResult]:
    return ApiResponse(data=await service.delete_ssh_key(key_id), metadata=_meta(request_id))


# =============================================================================
# Activity
# =============================================================================


@router.get(
    "/logs",
    response_model=ApiResponse[list[ActivityLogResponse]],
    summary="Activity log, newest first",
)
async def list_logs(
    service: Service,
    request_id: RequestId,
    limit: int = Query(default=50, ge=1, le=500),
) -> ApiResponse[list[ActivityLogResponse]]:
    entries = await service.logs(limit)
    return ApiResponse(
        data=[ActivityLogResponse.model_validate(entry) for entry in entries],
        metadata=_meta(request_id),
    )


@router.get(
    "/notifications",
    response_model=ApiResponse[list[ActivityLogResponse]],
    summary="Recent failed actions",
)
async def list_notifications(
    service: Service,
    request_id: RequestId,
    limit: int = Query(default=20, ge=1, le=100),
) -> ApiResponse[list[ActivityLogResponse]]:
    entries = await service.notifications(limit)
    return ApiResponse(
        data=[ActivityLogResponse.model_validate(entry) for entry in entries],
        metadata=_meta(request_id),
    )
