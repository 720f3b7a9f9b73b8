import uuid

from sqlalchemy import JSON, Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from acrecap.db.base import Base


class ActivityLog(Base):
    """Append-only record of notable user and admin actions."""

    __tablename__ = "activity_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    user_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    action = Column(String(120), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
