from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class BackupRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime | None = None
    created_by: UUID | None = None
    item_count: int


class BackupResponse(BaseModel):
    backup: BackupRead


class BackupListResponse(BaseModel):
    backups: list[BackupRead]
