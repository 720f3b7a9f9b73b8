import logging

from fastapi import FastAPI

logger = logging.getLogger(__name__)


def register_event_handlers(app: FastAPI) -> None:
    @app.on_event("startup")
    async def on_startup() -> None:
        settings = app.state.settings
        logger.info("Application startup (environment=%s)", settings.environment)
        if app.state.database is None:
            logger.warning("DATABASE_URL is not set; data endpoints will answer 503")
        if not settings.identity_provider_configured:
            logger.warning("No identity provider configured; bearer tokens will be rejected")

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        logger.info("Application shutdown")
        if app.state.database is not None:
            await app.state.database.dispose()
        if app.state.redis is not None:
            await app.state.redis.aclose()
