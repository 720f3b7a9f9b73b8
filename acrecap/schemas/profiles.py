from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProfileRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str | None = None
    phone: str | None = None
    role: ProfileRole
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=120)
    phone: str | None = Field(default=None, min_length=8, max_length=20)


class RoleUpdate(BaseModel):
    user_id: UUID
    role: ProfileRole


class ProfileResponse(BaseModel):
    profile: ProfileRead | None


class ProfileListResponse(BaseModel):
    profiles: list[ProfileRead]
