from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from acrecap.core.logging import get_audit_logger
from acrecap.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

DEFAULT_LIMIT = 100


def serialize_for_activity(value: Any) -> Any:
    return jsonable_encoder(
        value,
        custom_encoder={
            UUID: str,
            datetime: lambda v: v.isoformat(),
            date: lambda v: v.isoformat(),
        },
    )


def record_activity(
    db: AsyncSession,
    *,
    action: str,
    data: dict[str, Any] | None = None,
    user_id: UUID | None = None,
) -> ActivityLog:
    entry = ActivityLog(
        id=uuid.uuid4(),
        created_at=datetime.now(timezone.utc),
        user_id=user_id,
        action=action,
        data=serialize_for_activity(data or {}),
    )
    db.add(entry)
    audit_logger.info(
        action,
        extra={"event": {"action": action, "user_id": str(user_id) if user_id else None}},
    )
    return entry


async def append_activity(
    session_factory: async_sessionmaker[AsyncSession] | None,
    *,
    action: str,
    data: dict[str, Any] | None = None,
    user_id: UUID | None = None,
) -> None:
    """Write one activity row in its own session; failures are logged, never raised."""
    if session_factory is None:
        logger.debug("No database configured; dropping activity %s", action)
        return
    try:
        async with session_factory() as session:
            record_activity(session, action=action, data=data, user_id=user_id)
            await session.commit()
    except SQLAlchemyError as exc:
        logger.warning("Activity log append failed for %s: %s", action, exc)


async def list_activity(db: AsyncSession, *, limit: int = DEFAULT_LIMIT) -> list[ActivityLog]:
    stmt = select(ActivityLog).order_by(ActivityLog.created_at.desc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())
