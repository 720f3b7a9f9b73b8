"""Four-step public application wizard.

Steps 1-3 (basic details, business info, loan details) block progress until
valid. Step 4 (PAN and GST numbers) is checked for format only: bad values are
reported but never stop a submission; they are stored as null instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import BackgroundTasks
from pydantic import ValidationError
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.core.errors import RequestValidationFailed, flatten_errors
from acrecap.core.settings import Settings
from acrecap.db.session import Database
from acrecap.schemas.apply import (
    GSTIN_RE,
    PAN_RE,
    STEP_SCHEMAS,
    ApplyFormData,
    ApplyStep,
    ApplyStepResult,
    normalize_document_number,
)
from acrecap.schemas.submissions import SubmissionCreate, SubmissionRead, SubmissionStatus
from acrecap.services import activity, notifications, submission_stream, webhooks
from acrecap.services import submissions as submission_service
from acrecap.services.identity import Identity

BLOCKING_STEPS = (ApplyStep.BASIC, ApplyStep.BUSINESS, ApplyStep.LOAN)
CREATED_EVENT = "submission.created"


def confirmation_path(submission_id: Any) -> str:
    return f"/thank-you?id={submission_id}"


class ApplyWizard:
    def __init__(
        self,
        data: ApplyFormData | dict[str, Any] | None = None,
        current_step: ApplyStep = ApplyStep.BASIC,
    ) -> None:
        if isinstance(data, ApplyFormData):
            self.data = data
        else:
            self.data = ApplyFormData.model_validate(data or {})
        self.current_step = ApplyStep(current_step)

    @property
    def is_final_step(self) -> bool:
        return self.current_step == ApplyStep.DOCUMENTS

    def update(self, **fields: Any) -> None:
        self.data = self.data.model_copy(update=fields)

    def validate_step(self, step: ApplyStep | int) -> dict[str, list[str]]:
        schema = STEP_SCHEMAS[ApplyStep(step)]
        try:
            schema.model_validate(self.data.model_dump())
        except ValidationError as exc:
            return flatten_errors(exc.errors())["field_errors"]
        return {}

    def check_step(self, step: ApplyStep | int) -> ApplyStepResult:
        step = ApplyStep(step)
        errors = self.validate_step(step)
        next_step = None
        if not errors and step != ApplyStep.DOCUMENTS:
            next_step = int(step) + 1
        return ApplyStepResult(step=int(step), valid=not errors, errors=errors, next_step=next_step)

    def next(self) -> ApplyStepResult:
        """Validate the current step and advance when it passes."""
        result = self.check_step(self.current_step)
        if result.next_step is not None:
            self.current_step = ApplyStep(result.next_step)
        return result

    def previous(self) -> ApplyStep:
        if self.current_step > ApplyStep.BASIC:
            self.current_step = ApplyStep(self.current_step - 1)
        return self.current_step

    def sanitized_documents(self) -> dict[str, str | None]:
        pan = normalize_document_number(self.data.pan_number)
        gst = normalize_document_number(self.data.gst_number)
        return {
            "pan_number": pan if pan and PAN_RE.match(pan) else None,
            "gst_number": gst if gst and GSTIN_RE.match(gst) else None,
        }

    def build_submission(self) -> SubmissionCreate:
        field_errors: dict[str, list[str]] = {}
        for step in BLOCKING_STEPS:
            field_errors.update(self.validate_step(step))
        if field_errors:
            raise RequestValidationFailed(
                details={"field_errors": field_errors, "form_errors": []}
            )
        payload = self.data.model_dump(exclude={"pan_number", "gst_number"})
        payload.update(self.sanitized_documents())
        return submission_service.validate_submission(payload)


@dataclass(frozen=True)
class ApplyOutcome:
    submission: SubmissionRead
    redirect_to: str


async def submit_application(
    db: AsyncSession,
    wizard: ApplyWizard,
    identity: Identity | None = None,
) -> ApplyOutcome:
    payload = wizard.build_submission()
    submission = await submission_service.create_submission(db, payload, identity)
    record = SubmissionRead.model_validate(submission)
    return ApplyOutcome(submission=record, redirect_to=confirmation_path(record.id))


def schedule_post_submit_tasks(
    background_tasks: BackgroundTasks,
    submission: SubmissionRead,
    *,
    settings: Settings,
    database: Database | None,
    redis: Redis | None,
    identity: Identity | None = None,
) -> None:
    row = submission.model_dump(mode="json")
    background_tasks.add_task(webhooks.export_submission_row, row, settings)
    background_tasks.add_task(webhooks.notify_admins_new_submission, row, settings)
    background_tasks.add_task(
        notifications.send_status_email, submission, SubmissionStatus.PENDING, settings
    )
    background_tasks.add_task(
        activity.append_activity,
        database.session_factory if database else None,
        action="apply_submit",
        data={"id": str(submission.id)},
        user_id=identity.id if identity else None,
    )
    background_tasks.add_task(
        submission_stream.publish_submission_event, redis, CREATED_EVENT, submission
    )
