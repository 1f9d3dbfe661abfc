"""
Authentication Schemas.

Request/response models for /api/auth and the authenticated operator.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Operator(BaseModel):
    """The caller behind a valid access token."""

    username: str
    method: str
    token_id: str | None = None


class TokenResponse(BaseModel):
    token: str
    username: str
    method: str
    expires_at: datetime


class SshMessageResponse(BaseModel):
    message: str = Field(description="Challenge to sign with `ssh-keygen -Y sign`")
    namespace: str = Field(description="Signature namespace (-n)")
    expires_in_seconds: int


class SshVerifyRequest(BaseModel):
    message: str = Field(..., min_length=10, max_length=512)
    signature: str = Field(..., min_length=16, max_length=16384, description="Armored SSH signature or its base64")
    public_key: str | None = Field(default=None, max_length=16384)


class TelegramCodeRequest(BaseModel):
    username: str | None = Field(default=None, max_length=64)


class TelegramCodeSent(BaseModel):
    sent: bool
    recipients: int
    expires_in_seconds: int


class TelegramVerifyRequest(BaseModel):
    code: str = Field(..., min_length=4, max_length=16)


class WebAuthnUsernameRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)


class WebAuthnCredentialPayload(BaseModel):
    id: str = Field(..., min_length=8, max_length=512)
    public_key: str = Field(..., min_length=8, max_length=8192)
    challenge: str = Field(..., min_length=10, max_length=512)


class WebAuthnRegisterCompleteRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    credential: WebAuthnCredentialPayload


class WebAuthnAssertionPayload(BaseModel):
    id: str = Field(..., min_length=8, max_length=512)
    challenge: str = Field(..., min_length=10, max_length=512)


class WebAuthnVerifyRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    assertion: WebAuthnAssertionPayload


class WebAuthnOptionsResponse(BaseModel):
    options: dict[str, Any]


class WebAuthnCredentialResponse(BaseModel):
    id: str
    username: str
    counter: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
