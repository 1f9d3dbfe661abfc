"""
WebAuthn Service.

Registration and login options for platform authenticators.

Challenges are the same signed, self-expiring strings used for SSH login,
so nothing is stored between the options call and the completion call.

Assertion signatures are not verified, so verify_assertion never issues a
token: a fresh challenge and a known credential id are public knowledge
(see assertion_options) and prove nothing about the caller.
"""

import base64
import secrets
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from adminui.backend.core.config import get_app_config
from adminui.backend.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    SignatureVerificationError,
)
from adminui.backend.core.security import issue_challenge, verify_challenge
from adminui.backend.models.credentials import WebAuthnCredential
from adminui.backend.repositories.credentials import WebAuthnCredentialRepository
from adminui.backend.repositories.user import UserRepository
from adminui.backend.schemas.auth import (
    Operator,
    TokenResponse,
    WebAuthnAssertionPayload,
    WebAuthnCredentialPayload,
)
from adminui.backend.services.activity import ActivityService
from adminui.backend.services.base import BaseService

CHALLENGE_PREFIX = "webauthn"
ES256 = -7
RS256 = -257


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def ensure_enabled() -> None:
    if not get_app_config().features.webauthn_enabled:
        raise AuthorizationError("WebAuthn login is disabled", code="FEATURE_DISABLED")


class WebAuthnService(BaseService):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.credentials = WebAuthnCredentialRepository(session)
        self.users = UserRepository(session)
        self.activity = ActivityService(session)

    def _relying_party(self) -> dict[str, str]:
        config = get_app_config().security.webauthn
        return {"id": config.rp_id, "name": config.rp_name}

    def registration_options(self, username: str) -> dict[str, Any]:
        """PublicKeyCredentialCreationOptions for navigator.credentials.create()."""
        config = get_app_config().security.webauthn
        return {
            "challenge": issue_challenge(CHALLENGE_PREFIX),
            "rp": self._relying_party(),
            "user": {
                "id": _b64url(secrets.token_bytes(32)),
                "name": username,
                "displayName": username,
            },
            "pubKeyCredParams": [
                {"type": "public-key", "alg": ES256},
                {"type": "public-key", "alg": RS256},
            ],
            "timeout": config.timeout_ms,
            "attestation": "none",
            "authenticatorSelection": {"userVerification": "preferred"},
        }

    async def complete_registration(
        self,
        operator: Operator,
        username: str,
        credential: WebAuthnCredentialPayload,
        ip_address: str | None,
    ) -> WebAuthnCredential:
        """
        Store a credential for the logged-in operator.

        Raises:
            AuthorizationError: Registering for another user
            AuthenticationError: Challenge invalid or expired
            ConflictError: Credential id already registered
        """
        if username != operator.username:
            raise AuthorizationError("Credentials can only be registered for yourself")
        verify_challenge(credential.challenge)

        if await self.credentials.get_by_id_or_none(credential.id) is not None:
            raise ConflictError("Credential already registered")

        await self.users.ensure(username)
        stored = await self._execute_db_operation(
            "register webauthn credential",
            self.credentials.create(
                id=credential.id,
                username=username,
                public_key=credential.public_key,
                counter=0,
            ),
        )
        await self.activity.record(
            username,
            "webauthn register",
            details=f"Credential {credential.id[:24]}",
            ip_address=ip_address,
        )
        self._log_operation("WebAuthn credential registered", username=username)
        return stored

    async def assertion_options(self, username: str) -> dict[str, Any]:
        """PublicKeyCredentialRequestOptions for navigator.credentials.get()."""
        config = get_app_config().security.webauthn
        registered = await self.credentials.list_for_user(username)
        return {
            "challenge": issue_challenge(CHALLENGE_PREFIX),
            "rpId": config.rp_id,
            "timeout": config.timeout_ms,
            "userVerification": "preferred",
            "allowCredentials": [
                {"type": "public-key", "id": cred.id} for cred in registered
            ],
        }

    async def verify_assertion(
        self,
        username: str,
        assertion: WebAuthnAssertionPayload,
        ip_address: str | None,
    ) -> TokenResponse:
        """
        Check a login assertion. No assertion is accepted.

        Raises:
            AuthenticationError: Challenge invalid or credential unknown for this user
            SignatureVerificationError: Otherwise; the authenticator signature is not checked
        """
        verify_challenge(assertion.challenge)

        credential = await self.credentials.get_for_user(assertion.id, username)
        if credential is None:
            raise AuthenticationError("Unknown credential")

        self._log_operation(
            "WebAuthn login refused",
            username=username,
            credential=credential.id[:24],
            ip_address=ip_address,
        )
        raise SignatureVerificationError("WebAuthn assertion signatures cannot be verified")
