from __future__ import annotations

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from acrecap.core.context import set_user_id
from acrecap.core.errors import Forbidden, Unauthorized
from acrecap.core.settings import Settings
from acrecap.db.session import Database, get_db
from acrecap.services import roles
from acrecap.services.identity import Identity, IdentityResolver

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity_resolver(request: Request) -> IdentityResolver:
    return request.app.state.identity_resolver


def get_optional_database(request: Request) -> Database | None:
    return getattr(request.app.state, "database", None)


def get_redis(request: Request) -> Redis | None:
    return getattr(request.app.state, "redis", None)


async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    if credentials is None:
        return None
    return credentials.credentials.strip() or None


async def get_optional_identity(
    token: str | None = Depends(get_bearer_token),
    x_user_id: str | None = Header(default=None, alias="x-user-id"),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> Identity | None:
    identity = await resolver.resolve(token, x_user_id)
    if identity is not None:
        set_user_id(str(identity.id))
    return identity


async def require_identity(
    identity: Identity | None = Depends(get_optional_identity),
) -> Identity:
    if identity is None:
        raise Unauthorized()
    return identity


async def require_admin(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_identity),
    settings: Settings = Depends(get_app_settings),
) -> Identity:
    """The database is resolved first so an unconfigured store answers 503 before 401/403."""
    if not await roles.is_admin(db, identity, settings.admin_email_set):
        raise Forbidden()
    return identity
