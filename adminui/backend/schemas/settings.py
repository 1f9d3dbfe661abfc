"""
User Settings Schemas.

Dashboard layout preferences. The server stores them as opaque JSON.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class UserSettingsPayload(BaseModel):
    card_layouts: dict[str, Any] | list[Any] | None = Field(default=None, description="Card order per column")
    card_heights: dict[str, Any] | None = Field(default=None, description="Card id to height")
    collapsed_cards: list[Any] | dict[str, Any] | None = Field(default=None, description="Collapsed card ids")


class UserSettingsResponse(UserSettingsPayload):
    username: str
    updated_at: datetime | None = None
