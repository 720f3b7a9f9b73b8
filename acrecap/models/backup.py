import uuid

from sqlalchemy import JSON, Column, DateTime, Integer, func
from sqlalchemy.dialects.postgresql import UUID

from acrecap.db.base import Base


class Backup(Base):
    __tablename__ = "backups"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_by = Column(UUID(as_uuid=True), nullable=True)
    item_count = Column(Integer, nullable=False, default=0)
    snapshot = Column(JSON, nullable=False, default=list)
