"""
Authentication API Endpoints.

Operator login by SSH signature, Telegram one-time code or WebAuthn.
Every route here is rate limited per client IP (security.rate_limiting.auth).
"""

from fastapi import APIRouter, BackgroundTasks, Depends

from adminui.backend.core.config import get_app_config
from adminui.backend.core.dependencies import ClientIp, CurrentOperator, DbSession, RequestId, enforce_auth_rate_limit
from adminui.backend.core.exceptions import ExternalServiceError, ServiceUnavailableError
from adminui.backend.schemas.auth import (
    SshMessageResponse,
    SshVerifyRequest,
    TelegramCodeRequest,
    TelegramCodeSent,
    TelegramVerifyRequest,
    TokenResponse,
    WebAuthnCredentialResponse,
    WebAuthnOptionsResponse,
    WebAuthnRegisterCompleteRequest,
    WebAuthnUsernameRequest,
    WebAuthnVerifyRequest,
)
from adminui.backend.schemas.base import ApiResponse, ResponseMetadata
from adminui.backend.services.auth import AuthService
from adminui.backend.services.webauthn import WebAuthnService, ensure_enabled
from adminui.telegram.services.notifications import get_notification_service

router = APIRouter(dependencies=[Depends(enforce_auth_rate_limit)])


def _alert_login(background_tasks: BackgroundTasks, token: TokenResponse, ip: str) -> None:
    notifier = get_notification_service()
    if notifier.is_available():
        background_tasks.add_task(notifier.send_login_alert, token.username, token.method, ip)


# =============================================================================
# SSH signature
# =============================================================================


@router.post(
    "/ssh-message",
    response_model=ApiResponse[SshMessageResponse],
    summary="Get a login challenge",
    description="Returns a short-lived message to sign with `ssh-keygen -Y sign`.",
)
async def ssh_message(db: DbSession, request_id: RequestId) -> ApiResponse[SshMessageResponse]:
    return ApiResponse(
        data=AuthService(db).ssh_message(),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/ssh-verify",
    response_model=ApiResponse[TokenResponse],
    summary="Log in with an SSH signature",
)
async def ssh_verify(
    data: SshVerifyRequest,
    db: DbSession,
    client_ip: ClientIp,
    request_id: RequestId,
    background_tasks: BackgroundTasks,
) -> ApiResponse[TokenResponse]:
    token = await AuthService(db).ssh_verify(data.message, data.signature, data.public_key, client_ip)
    _alert_login(background_tasks, token, client_ip)
    return ApiResponse(data=token, metadata=ResponseMetadata(request_id=request_id))


# =============================================================================
# Telegram one-time code
# =============================================================================


@router.post(
    "/telegram-request-code",
    response_model=ApiResponse[TelegramCodeSent],
    summary="Send a login code to the Telegram admins",
    description="The code is delivered through the bot only, never in the response.",
)
async def telegram_request_code(
    data: TelegramCodeRequest,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[TelegramCodeSent]:
    notifier = get_notification_service()
    if not notifier.is_available():
        raise ServiceUnavailableError("Telegram login is not configured")

    record = await AuthService(db).create_telegram_code(data.username)
    await db.commit()

    ttl = get_app_config().security.telegram_codes.ttl_seconds
    recipients = await notifier.send_login_code(record.code, record.username, ttl)
    if recipients == 0:
        raise ExternalServiceError("Login code could not be delivered via Telegram")

    return ApiResponse(
        data=TelegramCodeSent(sent=True, recipients=recipients, expires_in_seconds=ttl),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/telegram-verify",
    response_model=ApiResponse[TokenResponse],
    summary="Log in with a Telegram code",
)
async def telegram_verify(
    data: TelegramVerifyRequest,
    db: DbSession,
    client_ip: ClientIp,
    request_id: RequestId,
    background_tasks: BackgroundTasks,
) -> ApiResponse[TokenResponse]:
    token = await AuthService(db).verify_telegram_code(data.code, client_ip)
    _alert_login(background_tasks, token, client_ip)
    return ApiResponse(data=token, metadata=ResponseMetadata(request_id=request_id))


# =============================================================================
# WebAuthn
# =============================================================================


@router.post(
    "/webauthn-register",
    response_model=ApiResponse[WebAuthnOptionsResponse],
    summary="Credential creation options",
)
async def webauthn_register(
    data: WebAuthnUsernameRequest,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[WebAuthnOptionsResponse]:
    ensure_enabled()
    options = WebAuthnService(db).registration_options(data.username)
    return ApiResponse(
        data=WebAuthnOptionsResponse(options=options),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/webauthn-register-complete",
    response_model=ApiResponse[WebAuthnCredentialResponse],
    status_code=201,
    summary="Store a new credential for the logged-in operator",
)
async def webauthn_register_complete(
    data: WebAuthnRegisterCompleteRequest,
    operator: CurrentOperator,
    db: DbSession,
    client_ip: ClientIp,
    request_id: RequestId,
) -> ApiResponse[WebAuthnCredentialResponse]:
    ensure_enabled()
    credential = await WebAuthnService(db).complete_registration(
        operator, data.username, data.credential, client_ip
    )
    return ApiResponse(
        data=WebAuthnCredentialResponse.model_validate(credential),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/webauthn-challenge",
    response_model=ApiResponse[WebAuthnOptionsResponse],
    summary="Credential request options",
)
async def webauthn_challenge(
    data: WebAuthnUsernameRequest,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[WebAuthnOptionsResponse]:
    ensure_enabled()
    options = await WebAuthnService(db).assertion_options(data.username)
    return ApiResponse(
        data=WebAuthnOptionsResponse(options=options),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/webauthn-verify",
    response_model=ApiResponse[TokenResponse],
    summary="WebAuthn login, refused while assertion signatures are not verified",
)
async def webauthn_verify(
    data: WebAuthnVerifyRequest,
    db: DbSession,
    client_ip: ClientIp,
    request_id: RequestId,
    background_tasks: BackgroundTasks,
) -> ApiResponse[TokenResponse]:
    ensure_enabled()
    token = await WebAuthnService(db).verify_assertion(data.username, data.assertion, client_ip)
    _alert_login(background_tasks, token, client_ip)
    return ApiResponse(data=token, metadata=ResponseMetadata(request_id=request_id))
