from typing import Callable, Iterable

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from acrecap.core.settings import Settings


def build_limiter(settings: Settings, exempt: Iterable[Callable] = ()) -> Limiter:
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.rate_limit_per_minute}/minute"],
        storage_uri=settings.rate_limit_storage_uri,
    )
    for endpoint in exempt:
        limiter.exempt(endpoint)
    return limiter


async def enforce_rate_limit(request: Request) -> None:
    """Apply the app's default limits to the matched endpoint.

    Runs as a router dependency rather than through slowapi's middleware, whose
    route lookup cannot see endpoints inside included routers. A breach raises
    ``RateLimitExceeded`` into the registered exception handlers.
    """
    limiter: Limiter = request.app.state.limiter
    if getattr(request.state, "_rate_limiting_complete", False):
        return
    limiter._check_request_limit(request, request.scope.get("endpoint"), True)
    request.state._rate_limiting_complete = True


__all__ = ["build_limiter", "enforce_rate_limit"]
