from fastapi import APIRouter, BackgroundTasks, Depends, Path
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.api import deps
from acrecap.core.settings import Settings
from acrecap.db.session import Database, get_db
from acrecap.schemas.apply import ApplyFormData, ApplyStep, ApplyStepResult, ApplySubmitResponse
from acrecap.services import apply_form
from acrecap.services.identity import Identity

router = APIRouter(prefix="/apply", tags=["apply"])


@router.post("/steps/{step}", response_model=ApplyStepResult, summary="Validate one wizard step")
async def check_step(
    payload: ApplyFormData,
    step: int = Path(ge=1, le=len(ApplyStep)),
) -> ApplyStepResult:
    wizard = apply_form.ApplyWizard(payload, current_step=ApplyStep(step))
    return wizard.check_step(step)


@router.post("", response_model=ApplySubmitResponse, summary="Submit the completed wizard")
async def submit_application(
    payload: ApplyFormData,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    identity: Identity | None = Depends(deps.get_optional_identity),
    settings: Settings = Depends(deps.get_app_settings),
    database: Database | None = Depends(deps.get_optional_database),
    redis: Redis | None = Depends(deps.get_redis),
) -> ApplySubmitResponse:
    wizard = apply_form.ApplyWizard(payload, current_step=ApplyStep.DOCUMENTS)
    outcome = await apply_form.submit_application(db, wizard, identity)
    apply_form.schedule_post_submit_tasks(
        background_tasks,
        outcome.submission,
        settings=settings,
        database=database,
        redis=redis,
        identity=identity,
    )
    return ApplySubmitResponse(submission=outcome.submission, redirect_to=outcome.redirect_to)
