from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from acrecap.db.session import Database

APP_VERSION = "0.1.0"
BANNER = "AcreCap backend running. Use /healthz and /api/*"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _check_db(database: Database | None) -> dict[str, str]:
    if database is None:
        return {"status": "not_configured"}
    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except (SQLAlchemyError, OSError) as exc:
        return {"status": "error", "error": str(exc)}


async def _check_redis(redis: Redis | None) -> dict[str, str]:
    if redis is None:
        return {"status": "not_configured"}
    try:
        await redis.ping()
        return {"status": "ok"}
    except (RedisError, OSError) as exc:
        return {"status": "error", "error": str(exc)}


def live_payload() -> dict[str, Any]:
    return {"ok": True, "timestamp": _timestamp()}


async def ready_payload(database: Database | None, redis: Redis | None) -> dict[str, Any]:
    """Unconfigured backends do not count against readiness; failing ones do."""
    checks = {
        "database": await _check_db(database),
        "redis": await _check_redis(redis),
    }
    ok = all(check["status"] != "error" for check in checks.values())
    return {
        "ok": ok,
        "version": APP_VERSION,
        "timestamp": _timestamp(),
        "checks": checks,
    }
