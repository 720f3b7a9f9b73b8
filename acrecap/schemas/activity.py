from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ActivityCreate(BaseModel):
    action: str = Field(min_length=1, max_length=120)
    data: dict[str, Any] = Field(default_factory=dict)


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime | None = None
    user_id: UUID | None = None
    action: str
    data: dict[str, Any] = Field(default_factory=dict)


class ActivityResponse(BaseModel):
    activity: ActivityRead


class ActivityListResponse(BaseModel):
    activity: list[ActivityRead]
