import json
import logging
import logging.config
from datetime import datetime, timezone

from acrecap.core.context import get_request_id, get_user_id
from acrecap.core.settings import Settings


class RequestContextFilter(logging.Filter):
    """Inject request/user ids into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.user_id = get_user_id()
        record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    """Lightweight JSON formatter to keep logs structured."""

    def __init__(self, stream_label: str = "app") -> None:
        super().__init__()
        self.stream_label = stream_label

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "stream": self.stream_label,
            "user_id": getattr(record, "user_id", "-"),
            "request_id": getattr(record, "request_id", "-"),
        }
        extra = getattr(record, "event", None)
        if isinstance(extra, dict):
            payload["event"] = extra
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(settings: Settings) -> None:
    log_level = settings.log_level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "request_context": {"()": RequestContextFilter},
            },
            "formatters": {
                "json": {"()": JsonFormatter, "stream_label": "app"},
                "audit_json": {"()": JsonFormatter, "stream_label": "audit"},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "json",
                    "filters": ["request_context"],
                    "stream": "ext://sys.stdout",
                },
                "audit": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "audit_json",
                    "filters": ["request_context"],
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "": {"handlers": ["default"], "level": log_level, "propagate": False},
                "acrecap.audit": {"handlers": ["audit"], "level": log_level, "propagate": False},
                "uvicorn": {"handlers": ["default"], "level": log_level, "propagate": False},
            },
        }
    )
    logging.getLogger(__name__).info(
        "Logging configured for environment=%s persistence=%s identity_provider=%s",
        settings.environment,
        "configured" if settings.persistence_configured else "missing",
        "configured" if settings.identity_provider_configured else "missing",
    )


def get_audit_logger() -> logging.Logger:
    return logging.getLogger("acrecap.audit")
