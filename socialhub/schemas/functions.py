"""Request bodies accepted by the edge function handlers."""
from __future__ import annotations

from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FunctionRequest(BaseModel):
    action: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class CreateChatFunctionPayload(BaseModel):
    type: Literal["direct", "group"]
    name: str | None = None
    participants: list[UUID] = Field(..., min_length=1)


class UploadStoryFunctionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image: str = Field(..., min_length=1, alias="imageData", description="Base64 data URL")
    caption: str | None = Field(default=None, max_length=500)
    user_id: UUID = Field(..., alias="userId")


class SuggestFunctionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[Any] = Field(default_factory=list)
    context: str | None = Field(default=None, alias="chatContext")


__all__ = [
    "FunctionRequest",
    "CreateChatFunctionPayload",
    "UploadStoryFunctionPayload",
    "SuggestFunctionPayload",
]
