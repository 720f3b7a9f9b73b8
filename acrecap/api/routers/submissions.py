import asyncio
import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response
from fastapi.responses import StreamingResponse
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.api import deps
from acrecap.core.errors import Forbidden, ServiceUnavailable
from acrecap.core.settings import Settings
from acrecap.db.session import Database, get_db
from acrecap.schemas.submissions import (
    SubmissionCreate,
    SubmissionListResponse,
    SubmissionRead,
    SubmissionResponse,
    SubmissionStatus,
    SubmissionStatusUpdate,
)
from acrecap.services import exports, roles, status_workflow, submission_stream
from acrecap.services import submissions as submission_service
from acrecap.services.identity import Identity

router = APIRouter(prefix="/submissions", tags=["submissions"])
logger = logging.getLogger(__name__)


def _csv_response(content: str, prefix: str) -> Response:
    filename = exports.export_filename(prefix, datetime.now(timezone.utc))
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-store",
        },
    )


@router.post("", response_model=SubmissionResponse, summary="Create a loan application")
async def create_submission(
    payload: SubmissionCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    identity: Identity | None = Depends(deps.get_optional_identity),
    redis: Redis | None = Depends(deps.get_redis),
) -> SubmissionResponse:
    submission = await submission_service.create_submission(db, payload, identity)
    record = SubmissionRead.model_validate(submission)
    background_tasks.add_task(
        submission_stream.publish_submission_event, redis, "submission.created", record
    )
    return SubmissionResponse(submission=record)


@router.get("", response_model=SubmissionListResponse, summary="List all applications (admin)")
async def list_submissions(
    status: SubmissionStatus | None = Query(default=None),
    q: str | None = Query(default=None, max_length=120),
    db: AsyncSession = Depends(get_db),
    _: Identity = Depends(deps.require_admin),
) -> SubmissionListResponse:
    rows = await submission_service.list_all(db, status=status, search=q)
    return SubmissionListResponse(submissions=[SubmissionRead.model_validate(r) for r in rows])


@router.get("/mine", response_model=SubmissionListResponse, summary="Caller's own applications")
async def list_my_submissions(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(deps.require_identity),
) -> SubmissionListResponse:
    rows = await submission_service.list_mine(db, identity)
    return SubmissionListResponse(submissions=[SubmissionRead.model_validate(r) for r in rows])


@router.get("/export.csv", summary="Export all applications as CSV (admin)")
async def export_submissions(
    status: SubmissionStatus | None = Query(default=None),
    q: str | None = Query(default=None, max_length=120),
    db: AsyncSession = Depends(get_db),
    _: Identity = Depends(deps.require_admin),
) -> Response:
    rows = await submission_service.list_all(db, status=status, search=q)
    return _csv_response(exports.submissions_to_csv(rows), "submissions")


@router.get("/mine/export.csv", summary="Export own applications as CSV")
async def export_my_submissions(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(deps.require_identity),
) -> Response:
    rows = await submission_service.list_mine(db, identity)
    return _csv_response(exports.submissions_to_csv(rows), "my-applications")


@router.get("/stream", summary="Realtime submission events (SSE, admin)")
async def stream_submissions(
    _: Identity = Depends(deps.require_admin),
    redis: Redis | None = Depends(deps.get_redis),
):
    if redis is None:
        raise ServiceUnavailable("Realtime feed not configured")
    pubsub = await submission_stream.subscribe(redis)

    async def event_generator():
        try:
            yield ": connected\n\n"
            while True:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=15.0)
                if message and message.get("data"):
                    yield "event: submission\n"
                    yield f"data: {message['data']}\n\n"
                else:
                    yield ": keep-alive\n\n"
                await asyncio.sleep(0)
        finally:
            await submission_stream.unsubscribe(pubsub)

    headers = {"Cache-Control": "no-cache", "Connection": "keep-alive"}
    return StreamingResponse(event_generator(), media_type="text/event-stream", headers=headers)


@router.get("/{submission_id}", response_model=SubmissionResponse, summary="Fetch one application")
async def read_submission(
    submission_id: UUID,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(deps.require_identity),
    settings: Settings = Depends(deps.get_app_settings),
) -> SubmissionResponse:
    submission = await submission_service.get_submission(db, submission_id)
    if submission.user_id != identity.id and not await roles.is_admin(
        db, identity, settings.admin_email_set
    ):
        raise Forbidden()
    return SubmissionResponse(submission=SubmissionRead.model_validate(submission))


@router.patch("/{submission_id}", response_model=SubmissionResponse, summary="Change status (admin)")
async def update_submission_status(
    submission_id: UUID,
    payload: SubmissionStatusUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(deps.require_admin),
    settings: Settings = Depends(deps.get_app_settings),
    database: Database | None = Depends(deps.get_optional_database),
    redis: Redis | None = Depends(deps.get_redis),
) -> SubmissionResponse:
    change = await status_workflow.apply_status_change(db, submission_id, payload.status, identity)
    status_workflow.schedule_status_side_effects(
        background_tasks, change, settings=settings, database=database, redis=redis
    )
    return SubmissionResponse(submission=change.submission)
