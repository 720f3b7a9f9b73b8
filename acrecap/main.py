from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from acrecap.api import api_router
from acrecap.api.routers import health
from acrecap.core.errors import register_exception_handlers
from acrecap.core.health import APP_VERSION
from acrecap.core.limiter import build_limiter
from acrecap.core.logging import configure_logging
from acrecap.core.settings import Settings, get_settings
from acrecap.db.session import build_database
from acrecap.events import register_event_handlers
from acrecap.middlewares.request_context import RequestContextMiddleware
from acrecap.middlewares.security_headers import SecurityHeadersMiddleware
from acrecap.middlewares.trust_proxies import TrustedProxiesMiddleware
from acrecap.services.identity import IdentityResolver
from acrecap.utils.redis_client import build_redis_client


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)
    app = FastAPI(title="AcreCap Backend", version=APP_VERSION)

    app.state.settings = settings
    app.state.database = build_database(settings)
    app.state.identity_resolver = IdentityResolver(settings)
    app.state.redis = build_redis_client(settings)

    register_exception_handlers(app)
    app.state.limiter = build_limiter(settings, exempt=health.RATE_LIMIT_EXEMPT)
    app.add_middleware(TrustedProxiesMiddleware, proxies_count=settings.proxies_count)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        SecurityHeadersMiddleware,
        enable_hsts=settings.enable_hsts,
        content_security_policy=settings.content_security_policy,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health.router)
    app.include_router(api_router, prefix="/api")
    register_event_handlers(app)
    return app


app = create_app()
