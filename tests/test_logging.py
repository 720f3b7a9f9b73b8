import json
import logging

from acrecap.core import context
from acrecap.core.logging import JsonFormatter, RequestContextFilter, configure_logging

from conftest import make_settings


def test_uvicorn_child_loggers_share_one_handler() -> None:
    configure_logging(make_settings())

    parent = logging.getLogger("uvicorn")
    assert len(parent.handlers) == 1
    for name in ("uvicorn.error", "uvicorn.access"):
        child = logging.getLogger(name)
        assert child.handlers == []
        assert child.propagate is True


def test_json_formatter_includes_context_and_event() -> None:
    context.set_request_id("req-1")
    context.set_user_id("user-1")
    try:
        record = logging.LogRecord("acrecap.audit", logging.INFO, __file__, 1, "apply_submit", None, None)
        record.event = {"action": "apply_submit"}
        RequestContextFilter().filter(record)

        payload = json.loads(JsonFormatter(stream_label="audit").format(record))
    finally:
        context.clear_context()

    assert payload["stream"] == "audit"
    assert payload["request_id"] == "req-1"
    assert payload["user_id"] == "user-1"
    assert payload["event"] == {"action": "apply_submit"}
