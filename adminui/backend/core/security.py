"""
Security Utilities.

Access tokens and stateless login challenges.

Tokens are self-contained JWTs; nothing is looked up server-side when a
token is presented. Challenges (SSH signing messages, WebAuthn challenges)
carry their own issue time and an HMAC, so they can be verified without
storing them.
"""

import hashlib
import hmac
import secrets
import time
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from jose import JWTError, jwt

from adminui.backend.core.config import get_app_config, get_settings
from adminui.backend.core.exceptions import AuthenticationError, SignatureVerificationError
from adminui.backend.core.logging import get_logger
from adminui.backend.core.utils import utc_now

logger = get_logger(__name__)


def create_access_token(
    subject: str,
    method: str,
    expires_delta: timedelta | None = None,
) -> tuple[str, str, datetime]:
    """
    Create a JWT access token for an operator.

    Args:
        subject: Operator username
        method: Login method (ssh, telegram, webauthn)
        expires_delta: Optional custom expiration time

    Returns:
        Tuple of (encoded token, token id, expiry time)
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt

    if expires_delta:
        expire = utc_now() + expires_delta
    else:
        expire = utc_now() + timedelta(minutes=jwt_config.access_token_expire_minutes)

    token_id = str(uuid4())
    to_encode = {
        "sub": subject,
        "method": method,
        "jti": token_id,
        "exp": expire,
        "type": "access",
        "aud": jwt_config.audience,
    }
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=jwt_config.algorithm)
    return encoded_jwt, token_id, expire


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        AuthenticationError: If token is invalid, expired, or not an access token
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[jwt_config.algorithm],
            audience=jwt_config.audience,
        )
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise AuthenticationError("Invalid or expired token")

    if payload.get("type") != "access" or not payload.get("sub"):
        raise AuthenticationError("Invalid or expired token")
    return payload


def _challenge_mac(body: str) -> str:
    secret = get_settings().jwt_secret.encode("utf-8")
    return hmac.new(secret, b"challenge:" + body.encode("utf-8"), hashlib.sha256).hexdigest()[:32]


def issue_challenge(prefix: str | None = None, now: float | None = None) -> str:
    """
    Issue a signed login challenge.

    Format: ``<prefix>-<unix_ts>-<nonce>-<mac>``. The prefix defaults to
    security.challenges.prefix.
    """
    prefix = prefix or get_app_config().security.challenges.prefix
    issued_at = int(now if now is not None else time.time())
    body = f"{prefix}-{issued_at}-{secrets.token_hex(16)}"
    return f"{body}-{_challenge_mac(body)}"


def verify_challenge(challenge: str, now: float | None = None) -> None:
    """
    Check that a challenge was issued by this server and has not expired.

    Raises:
        SignatureVerificationError: If the MAC does not match or the challenge is stale
    """
    ttl = get_app_config().security.challenges.ttl_seconds
    body, _, mac = challenge.rpartition("-")
    if not body or not hmac.compare_digest(mac, _challenge_mac(body)):
        raise SignatureVerificationError("Unknown login challenge")

    try:
        issued_at = int(body.rsplit("-", 2)[-2])
    except (IndexError, ValueError):
        raise SignatureVerificationError("Malformed login challenge")

    current = now if now is not None else time.time()
    if current - issued_at > ttl or issued_at - current > 30:
        raise SignatureVerificationError("Login challenge expired")
