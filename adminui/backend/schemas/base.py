"""
The JSON envelope around every API response.

Success: ``{"success": true, "data": ..., "error": null, "metadata": {...}}``.
Failure: ``success`` false, ``data`` null and ``error`` filled in.
``metadata.request_id`` matches the X-Request-ID response header.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from adminui.backend.core.utils import utc_now

DataT = TypeVar("DataT")


class ResponseMetadata(BaseModel):
    timestamp: datetime = Field(default_factory=utc_now)
    request_id: str | None = None


class ErrorDetail(BaseModel):
    code: str = Field(description="Stable machine-readable code, e.g. CMD_NOT_ALLOWED")
    message: str
    details: dict[str, Any] | None = None


class ApiResponse(BaseModel, Generic[DataT]):
    model_config = ConfigDict(from_attributes=True)

    success: bool = True
    data: DataT | None = None
    error: ErrorDetail | None = None
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class ErrorResponse(ApiResponse[None]):
    success: bool = False
    error: ErrorDetail
