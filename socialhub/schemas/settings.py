"""Schemas backing the settings API."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    notifications_enabled: bool = True
    sleep_tracking_enabled: bool = True
    nutrition_tracking_enabled: bool = True
    theme: str = "light"
    language: str = "en"
    updated_at: datetime | None = None


class SettingsUpdateRequest(BaseModel):
    notifications_enabled: bool | None = None
    sleep_tracking_enabled: bool | None = None
    nutrition_tracking_enabled: bool | None = None
    theme: Literal["light", "dark", "system"] | None = None
    language: str | None = Field(default=None, min_length=2, max_length=16)


class AccountActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    action: str
    ip_address: str | None = None
    created_at: datetime


class AccountActivityListResponse(BaseModel):
    items: list[AccountActivityResponse]


__all__ = [
    "SettingsResponse",
    "SettingsUpdateRequest",
    "AccountActivityResponse",
    "AccountActivityListResponse",
]
