from fastapi import APIRouter, Depends

from acrecap.api.routers import activity, apply, backups, submissions, users
from acrecap.core.limiter import enforce_rate_limit

api_router = APIRouter(dependencies=[Depends(enforce_rate_limit)])
api_router.include_router(users.router)
api_router.include_router(submissions.router)
api_router.include_router(apply.router)
api_router.include_router(activity.router)
api_router.include_router(backups.router)

__all__ = ["api_router"]
