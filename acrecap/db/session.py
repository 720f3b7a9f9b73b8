from __future__ import annotations

from collections.abc import AsyncGenerator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from acrecap.core.errors import ServiceUnavailable
from acrecap.core.settings import Settings

_SSL_OFF = {"0", "false", "no", "off", "disable"}
_SSL_MODES = {"require", "verify-ca", "verify-full", "prefer", "allow"}


def normalize_database_url(url: str) -> str:
    """Rewrite hosted-Postgres DSNs so they load with the psycopg async driver."""
    url = (url or "").strip()
    if not url:
        return url

    parts = urlsplit(url)
    scheme = parts.scheme
    if scheme in {"postgres", "postgresql", "postgresql+asyncpg"}:
        scheme = "postgresql+psycopg"

    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    ssl_key = next((key for key in query if key.lower() == "ssl"), None)
    if ssl_key is not None:
        flag = query.pop(ssl_key).lower().strip()
        if "sslmode" not in query:
            if flag in _SSL_OFF:
                query["sslmode"] = "disable"
            elif flag in _SSL_MODES:
                query["sslmode"] = flag
            else:
                query["sslmode"] = "require"

    return urlunsplit((scheme, parts.netloc, parts.path, urlencode(query, doseq=True), parts.fragment))


class Database:
    """Engine and session factory for the configured Postgres instance."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = normalize_database_url(url)
        self.engine: AsyncEngine = create_async_engine(self.url, echo=echo, pool_pre_ping=True)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False, autoflush=False)

    async def dispose(self) -> None:
        await self.engine.dispose()


def build_database(settings: Settings) -> Database | None:
    if not settings.persistence_configured:
        return None
    return Database(settings.database_url)


def get_database(request: Request) -> Database:
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise ServiceUnavailable("Database not configured")
    return database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    database = get_database(request)
    async with database.session_factory() as session:
        yield session
