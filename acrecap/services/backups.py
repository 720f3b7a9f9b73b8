from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.models.backup import Backup
from acrecap.schemas.submissions import SubmissionRead
from acrecap.services import submissions as submission_service
from acrecap.services.identity import Identity


async def create_backup(db: AsyncSession, actor: Identity) -> Backup:
    """Snapshot every submission into a single backup row."""
    rows = await submission_service.list_all(db)
    snapshot = [SubmissionRead.model_validate(row).model_dump(mode="json") for row in rows]
    backup = Backup(
        id=uuid.uuid4(),
        created_at=datetime.now(timezone.utc),
        created_by=actor.id,
        item_count=len(snapshot),
        snapshot=snapshot,
    )
    db.add(backup)
    await db.commit()
    return backup


async def list_backups(db: AsyncSession) -> list[Backup]:
    result = await db.execute(select(Backup).order_by(Backup.created_at.desc()))
    return list(result.scalars().all())
