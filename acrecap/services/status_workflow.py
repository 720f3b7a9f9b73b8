"""Admin-driven status changes and the side effects that follow them.

Any status may move to any other, including back to ``pending`` and to the
same value. The status write is committed first; the applicant e-mail, the
activity row and the realtime event are scheduled afterwards and none of them
can fail the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import BackgroundTasks
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.core.settings import Settings
from acrecap.db.session import Database
from acrecap.schemas.submissions import SubmissionRead, SubmissionStatus
from acrecap.services import activity, notifications, submission_stream
from acrecap.services import submissions as submission_service
from acrecap.services.identity import Identity

logger = logging.getLogger(__name__)

# Fully connected: any status may move to any other, including itself.
ALLOWED_TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    status: frozenset(SubmissionStatus) for status in SubmissionStatus
}

STATUS_EVENT = "submission.status_changed"


@dataclass(frozen=True)
class StatusChange:
    submission: SubmissionRead
    previous_status: SubmissionStatus
    new_status: SubmissionStatus
    actor_id: UUID


def can_transition(current: SubmissionStatus, new: SubmissionStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


async def apply_status_change(
    db: AsyncSession,
    submission_id: UUID,
    new_status: SubmissionStatus,
    actor: Identity,
) -> StatusChange:
    submission = await submission_service.get_submission(db, submission_id)
    previous = SubmissionStatus(submission.status)
    submission = await submission_service.set_status(db, submission, new_status)
    logger.info(
        "Submission %s status %s -> %s by %s",
        submission.id,
        previous.value,
        new_status.value,
        actor.id,
    )
    return StatusChange(
        submission=SubmissionRead.model_validate(submission),
        previous_status=previous,
        new_status=new_status,
        actor_id=actor.id,
    )


def schedule_status_side_effects(
    background_tasks: BackgroundTasks,
    change: StatusChange,
    *,
    settings: Settings,
    database: Database | None,
    redis: Redis | None,
) -> None:
    background_tasks.add_task(
        notifications.send_status_email, change.submission, change.new_status, settings
    )
    background_tasks.add_task(
        activity.append_activity,
        database.session_factory if database else None,
        action="admin_update_status",
        data={"id": str(change.submission.id), "status": change.new_status.value},
        user_id=change.actor_id,
    )
    background_tasks.add_task(
        submission_stream.publish_submission_event, redis, STATUS_EVENT, change.submission
    )
