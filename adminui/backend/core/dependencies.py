"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from ipaddress import ip_address, ip_network
from typing import Annotated

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from adminui.backend.core.config import get_app_config
from adminui.backend.core.database import get_db_session
from adminui.backend.core.exceptions import AuthenticationError, RateLimitError
from adminui.backend.core.logging import get_logger
from adminui.backend.core.rate_limiter import get_rate_limiter
from adminui.backend.core.security import decode_token
from adminui.backend.schemas.auth import Operator

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]

_bearer = HTTPBearer(auto_error=False)


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """
    Extract or generate request ID from headers.

    Used for request tracing and correlation.
    """
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


def _trusted(address: str, proxies: list[str]) -> bool:
    try:
        ip = ip_address(address)
    except ValueError:
        return False
    return any(ip in ip_network(proxy, strict=False) for proxy in proxies)


def get_client_ip(request: Request) -> str:
    """
    Address used for rate limiting and the audit log.

    The TCP peer, unless the peer is one of security.trusted_proxies. Then
    X-Forwarded-For is read from the right, skipping further trusted hops,
    and the first untrusted address is the client. Hops left of it are
    whatever the client chose to send and are ignored.
    """
    peer = request.client.host if request.client else "unknown"
    proxies = get_app_config().security.trusted_proxies
    if not _trusted(peer, proxies):
        return peer

    hops = [hop.strip() for hop in request.headers.get("x-forwarded-for", "").split(",") if hop.strip()]
    for hop in reversed(hops):
        if not _trusted(hop, proxies):
            return hop
    return hops[0] if hops else peer


ClientIp = Annotated[str, Depends(get_client_ip)]


async def get_current_operator(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Operator:
    """
    Resolve the operator from the Bearer token.

    Raises:
        AuthenticationError: Missing, malformed, tampered or expired token
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Authentication required")

    payload = decode_token(credentials.credentials)
    return Operator(
        username=payload["sub"],
        method=payload.get("method", "unknown"),
        token_id=payload.get("jti"),
    )


CurrentOperator = Annotated[Operator, Depends(get_current_operator)]


async def enforce_auth_rate_limit(client_ip: ClientIp) -> None:
    """Per-IP limit on the login endpoints."""
    result = get_rate_limiter().check("auth", client_ip)
    if not result.allowed:
        raise RateLimitError(
            "Too many authentication attempts",
            retry_after_seconds=result.retry_after_seconds,
        )
