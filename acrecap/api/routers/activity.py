from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.api import deps
from acrecap.db.session import get_db
from acrecap.schemas.activity import (
    ActivityCreate,
    ActivityListResponse,
    ActivityRead,
    ActivityResponse,
)
from acrecap.services import activity as activity_service
from acrecap.services.identity import Identity

router = APIRouter(prefix="/activity", tags=["activity"])


@router.post("", response_model=ActivityResponse, summary="Record a client-side action")
async def create_activity(
    payload: ActivityCreate,
    db: AsyncSession = Depends(get_db),
    identity: Identity | None = Depends(deps.get_optional_identity),
) -> ActivityResponse:
    entry = activity_service.record_activity(
        db,
        action=payload.action,
        data=payload.data,
        user_id=identity.id if identity else None,
    )
    await db.commit()
    return ActivityResponse(activity=ActivityRead.model_validate(entry))


@router.get("", response_model=ActivityListResponse, summary="Recent activity (admin)")
async def list_activity(
    limit: int = Query(activity_service.DEFAULT_LIMIT, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _: Identity = Depends(deps.require_admin),
) -> ActivityListResponse:
    entries = await activity_service.list_activity(db, limit=limit)
    return ActivityListResponse(activity=[ActivityRead.model_validate(e) for e in entries])
