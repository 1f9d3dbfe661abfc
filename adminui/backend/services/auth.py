"""
Authentication Service.

Operator login by SSH signature or Telegram one-time code, and the token
issuing shared with WebAuthn login.

Every successful login upserts the user, stamps last_login, writes an
auth_sessions row and an activity log entry, then returns a JWT.
"""

import secrets
from datetime import timedelta
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

from adminui.backend.core.config import get_app_config, get_settings
from adminui.backend.core.exceptions import AuthenticationError, SignatureVerificationError, ValidationError
from adminui.backend.core.security import create_access_token, issue_challenge, verify_challenge
from adminui.backend.core.utils import utc_now
from adminui.backend.models.auth import TelegramCode
from adminui.backend.remote.commands import parse_public_key
from adminui.backend.repositories.auth import AuthSessionRepository, TelegramCodeRepository
from adminui.backend.repositories.credentials import SshKeyRepository
from adminui.backend.repositories.user import UserRepository
from adminui.backend.schemas.auth import SshMessageResponse, TokenResponse
from adminui.backend.services.activity import ActivityService
from adminui.backend.services.base import BaseService
from adminui.backend.services.ssh_signature import find_signing_key

# Unambiguous characters only: no 0/O, 1/I/L
CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
DEFAULT_USERNAME = "admin"


def username_from_key(public_key: str) -> str:
    """Key comment up to the first ``@``; ``admin`` when there is no comment."""
    try:
        _, _, comment = parse_public_key(public_key)
    except ValidationError:
        return DEFAULT_USERNAME
    if not comment:
        return DEFAULT_USERNAME
    name = comment.split("@", 1)[0].strip()
    return name[:64] or DEFAULT_USERNAME


def _key_identity(public_key: str) -> tuple[str, str]:
    key_type, body, _ = parse_public_key(public_key)
    return key_type, body


def generate_code(length: int) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class AuthService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.users = UserRepository(session)
        self.sessions = AuthSessionRepository(session)
        self.codes = TelegramCodeRepository(session)
        self.ssh_keys = SshKeyRepository(session)
        self.activity = ActivityService(session)

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------

    async def issue_token(
        self,
        username: str,
        method: str,
        ip_address: str | None,
        details: str | None = None,
        ssh_public_key: str | None = None,
    ) -> TokenResponse:
        """Record a successful login and return an access token."""
        await self.users.record_login(username, ssh_public_key)
        token, token_id, expires_at = create_access_token(username, method)
        await self.sessions.create(
            id=token_id,
            username=username,
            method=method,
            ip_address=ip_address,
            expires_at=expires_at,
        )
        await self.activity.record(
            username,
            f"{method} login",
            details=details,
            ip_address=ip_address,
        )
        self._log_operation("Operator logged in", username=username, method=method, ip=ip_address)
        return TokenResponse(token=token, username=username, method=method, expires_at=expires_at)

    # -------------------------------------------------------------------------
    # SSH signature
    # -------------------------------------------------------------------------

    def ssh_message(self) -> SshMessageResponse:
        challenges = get_app_config().security.challenges
        return SshMessageResponse(
            message=issue_challenge(),
            namespace=challenges.ssh_namespace,
            expires_in_seconds=challenges.ttl_seconds,
        )

    async def candidate_keys(self) -> list[str]:
        """
        Public keys accepted for SSH login, de-duplicated by key material.

        Order: SSH_PUBLIC_KEY, security.challenges.operator_public_key_path,
        then keys added through the panel.
        """
        raw: list[str] = []
        settings = get_settings()
        if settings.ssh_public_key:
            raw.append(settings.ssh_public_key)

        key_path = get_app_config().security.challenges.operator_public_key_path
        if key_path:
            path = Path(key_path).expanduser()
            if path.is_file():
                raw.extend(path.read_text(encoding="utf-8").splitlines())

        raw.extend(key.public_key for key in await self.ssh_keys.list_all())

        keys: list[str] = []
        seen: set[tuple[str, str]] = set()
        for line in raw:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                identity = _key_identity(line)
            except ValidationError:
                self._logger.warning("Skipping malformed public key", extra={"key": line[:40]})
                continue
            if identity not in seen:
                seen.add(identity)
                keys.append(line)
        return keys

    async def ssh_verify(
        self,
        message: str,
        signature: str,
        public_key: str | None,
        ip_address: str | None,
    ) -> TokenResponse:
        """
        Verify a signed challenge and log the operator in.

        Raises:
            SignatureVerificationError: Challenge or signature invalid
        """
        verify_challenge(message)

        candidates = await self.candidate_keys()
        if public_key:
            try:
                wanted = _key_identity(public_key)
            except ValidationError:
                raise SignatureVerificationError("Public key is malformed")
            candidates = [key for key in candidates if _key_identity(key) == wanted]
            if not candidates:
                raise SignatureVerificationError("Public key is not authorized for login")

        namespace = get_app_config().security.challenges.ssh_namespace
        signing_key = await find_signing_key(message, signature, candidates, namespace)

        username = username_from_key(signing_key)
        return await self.issue_token(
            username,
            "ssh",
            ip_address,
            details=f"SSH key: {signing_key[:50]}...",
            ssh_public_key=signing_key,
        )

    # -------------------------------------------------------------------------
    # Telegram one-time codes
    # -------------------------------------------------------------------------

    async def create_telegram_code(self, username: str | None = None) -> TelegramCode:
        """Store a new one-time code for ``username`` (default ``admin``)."""
        config = get_app_config().security.telegram_codes
        username = (username or DEFAULT_USERNAME).strip()[:64] or DEFAULT_USERNAME
        await self.users.ensure(username)

        now = utc_now()
        record = await self._execute_db_operation(
            "create telegram code",
            self.codes.create(
                code=generate_code(config.length),
                username=username,
                created_at=now,
                expires_at=now + timedelta(seconds=config.ttl_seconds),
                used=False,
            ),
        )
        self._log_operation("Telegram login code issued", username=username)
        return record

    async def check_telegram_code(self, code: str) -> TelegramCode | None:
        """Valid code record, without consuming it."""
        return await self.codes.find_valid(code.strip().upper(), utc_now())

    async def verify_telegram_code(self, code: str, ip_address: str | None) -> TokenResponse:
        """
        Consume a one-time code and log its user in.

        Raises:
            AuthenticationError: Code unknown, already used or expired
        """
        claimed = await self.codes.claim(code.strip().upper(), utc_now())
        if claimed is None:
            self._logger.warning("Telegram code rejected", extra={"ip": ip_address})
            raise AuthenticationError("Invalid or expired code")
        return await self.issue_token(
            claimed.username,
            "telegram",
            ip_address,
            details="Telegram one-time code",
        )
