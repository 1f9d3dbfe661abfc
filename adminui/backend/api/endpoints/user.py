"""
User Settings Endpoints.

Dashboard layout of the logged-in operator. Mounted under both
/api/user and /api/server.
"""

from fastapi import APIRouter

from adminui.backend.core.dependencies import CurrentOperator, DbSession, RequestId
from adminui.backend.schemas.base import ApiResponse, ResponseMetadata
from adminui.backend.schemas.settings import UserSettingsPayload, UserSettingsResponse
from adminui.backend.services.settings import SettingsService

router = APIRouter()


@router.get(
    "/settings",
    response_model=ApiResponse[UserSettingsResponse],
    summary="Get dashboard settings",
)
async def get_settings(
    operator: CurrentOperator,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[UserSettingsResponse]:
    settings = await SettingsService(db).get(operator.username)
    return ApiResponse(data=settings, metadata=ResponseMetadata(request_id=request_id))


@router.post(
    "/settings",
    response_model=ApiResponse[UserSettingsResponse],
    summary="Save dashboard settings",
    description="Omitted fields keep their stored value.",
)
async def save_settings(
    data: UserSettingsPayload,
    operator: CurrentOperator,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[UserSettingsResponse]:
    settings = await SettingsService(db).save(operator.username, data)
    return ApiResponse(data=settings, metadata=ResponseMetadata(request_id=request_id))
