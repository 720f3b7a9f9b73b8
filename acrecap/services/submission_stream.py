from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from redis.asyncio import Redis
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from acrecap.schemas.submissions import SubmissionRead
from acrecap.utils.redis_client import redis_key

CHANNEL = redis_key("submissions")
logger = logging.getLogger(__name__)


def event_payload(event_type: str, submission: SubmissionRead) -> dict[str, Any]:
    return {
        "type": event_type,
        "id": str(submission.id),
        "status": submission.status,
        "updated_at": submission.updated_at.isoformat() if submission.updated_at else None,
    }


async def publish_submission_event(
    redis: Redis | None, event_type: str, submission: SubmissionRead
) -> None:
    if redis is None:
        return
    try:
        await redis.publish(CHANNEL, json.dumps(event_payload(event_type, submission)))
    except RedisError as exc:
        logger.warning("Submission event publish failed: %s", exc)


async def subscribe(redis: Redis) -> PubSub:
    pubsub = redis.pubsub()
    await pubsub.subscribe(CHANNEL)
    return pubsub


async def unsubscribe(pubsub: PubSub) -> None:
    try:
        await asyncio.wait_for(pubsub.unsubscribe(CHANNEL), timeout=2.0)
    except (RedisError, TimeoutError, asyncio.TimeoutError) as exc:
        logger.warning("Submission stream unsubscribe failed: %s", exc)
    finally:
        try:
            await asyncio.wait_for(pubsub.close(), timeout=2.0)
        except (RedisError, TimeoutError, asyncio.TimeoutError) as exc:
            logger.warning("Submission stream pubsub close failed: %s", exc)
