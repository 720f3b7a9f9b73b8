from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from redis.asyncio import Redis

from acrecap.api import deps
from acrecap.core.health import BANNER, live_payload, ready_payload
from acrecap.db.session import Database

router = APIRouter(tags=["health"])


@router.get("/healthz", response_class=PlainTextResponse, summary="Liveness probe")
async def healthz() -> PlainTextResponse:
    return PlainTextResponse("ok", headers={"Cache-Control": "no-store"})


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return BANNER


@router.get("/api/health", summary="Service liveness check")
async def api_health() -> dict:
    return live_payload()


@router.get("/api/health/ready", summary="Service readiness check")
async def api_health_ready(
    database: Database | None = Depends(deps.get_optional_database),
    redis: Redis | None = Depends(deps.get_redis),
) -> dict:
    return await ready_payload(database, redis)


RATE_LIMIT_EXEMPT = (healthz, root, api_health, api_health_ready)
