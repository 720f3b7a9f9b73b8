from redis.asyncio import Redis

from acrecap.core.settings import Settings


KEY_PREFIX = "acrecap"


def redis_key(*parts: str) -> str:
    return ":".join([KEY_PREFIX, *parts])


def build_redis_client(settings: Settings) -> Redis | None:
    if not settings.redis_url:
        return None
    return Redis.from_url(settings.redis_url, decode_responses=True)
