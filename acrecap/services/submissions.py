from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.core.errors import NotFound, RequestValidationFailed
from acrecap.models.submission import Submission
from acrecap.schemas.submissions import SubmissionCreate, SubmissionStatus
from acrecap.services.identity import Identity

SEARCH_FIELDS = ("name", "email", "mobile", "city", "business_name", "loan_amount")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def validate_submission(data: dict[str, Any]) -> SubmissionCreate:
    try:
        return SubmissionCreate.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationFailed.from_pydantic(exc) from exc


async def create_submission(
    db: AsyncSession,
    payload: SubmissionCreate,
    identity: Identity | None = None,
) -> Submission:
    now = _utcnow()
    submission = Submission(
        id=uuid.uuid4(),
        **payload.stored_fields(),
        user_id=identity.id if identity else None,
        status=SubmissionStatus.PENDING.value,
        created_at=now,
        updated_at=now,
    )
    db.add(submission)
    await db.commit()
    return submission


async def list_all(
    db: AsyncSession,
    *,
    status: SubmissionStatus | None = None,
    search: str | None = None,
) -> list[Submission]:
    stmt = select(Submission)
    if status is not None:
        stmt = stmt.where(Submission.status == status.value)
    term = (search or "").strip()
    if term:
        pattern = _like_pattern(term)
        stmt = stmt.where(
            or_(*(getattr(Submission, field).ilike(pattern, escape="\\") for field in SEARCH_FIELDS))
        )
    stmt = stmt.order_by(Submission.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_mine(db: AsyncSession, identity: Identity) -> list[Submission]:
    stmt = (
        select(Submission)
        .where(Submission.user_id == identity.id)
        .order_by(Submission.created_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_submission(db: AsyncSession, submission_id: UUID) -> Submission:
    submission = await db.get(Submission, submission_id)
    if submission is None:
        raise NotFound(f"Submission {submission_id} not found")
    return submission


async def set_status(db: AsyncSession, submission: Submission, status: SubmissionStatus) -> Submission:
    submission.status = status.value
    submission.updated_at = _utcnow()
    await db.commit()
    return submission


async def update_status(db: AsyncSession, submission_id: UUID, status: SubmissionStatus) -> Submission:
    submission = await get_submission(db, submission_id)
    return await set_status(db, submission, status)
