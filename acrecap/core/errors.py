from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Iterable

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_REQUEST_SECTIONS = {"body", "query", "path", "header", "cookie"}


class ApiError(Exception):
    """Base class for errors that map onto a JSON error response."""

    status_code = 500
    code = "server_error"
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, details: dict | None = None) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class RequestValidationFailed(ApiError):
    status_code = 400
    code = "validation_error"
    default_message = "Validation failed"

    @classmethod
    def from_errors(cls, errors: Iterable[dict]) -> "RequestValidationFailed":
        return cls(details=flatten_errors(errors))

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "RequestValidationFailed":
        return cls.from_errors(exc.errors())


class Unauthorized(ApiError):
    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required"


class InvalidToken(ApiError):
    status_code = 401
    code = "invalid_token"
    default_message = "Invalid or expired token"


class Forbidden(ApiError):
    status_code = 403
    code = "forbidden"
    default_message = "Insufficient privileges"


class NotFound(ApiError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class Conflict(ApiError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"


class ServiceUnavailable(ApiError):
    status_code = 503
    code = "service_unavailable"
    default_message = "Service unavailable"


def _default_code(status_code: int) -> str:
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        429: "rate_limited",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "http_error")


def _default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def _field_name(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc if part not in _REQUEST_SECTIONS]
    return ".".join(parts)


def flatten_errors(errors: Iterable[dict]) -> dict[str, Any]:
    """Group validation errors per field so every failing field is reported."""
    field_errors: dict[str, list[str]] = {}
    form_errors: list[str] = []
    for error in errors:
        message = str(error.get("msg") or "Invalid value")
        field = _field_name(error.get("loc") or [])
        if field:
            field_errors.setdefault(field, []).append(message)
        else:
            form_errors.append(message)
    return {"field_errors": field_errors, "form_errors": form_errors}


def _normalize_details(details: Any) -> dict:
    if details is None:
        return {}
    if isinstance(details, dict):
        return details
    if isinstance(details, list):
        return {"errors": details}
    return {"detail": str(details)}


def _build_response(
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    payload = {
        "error": code,
        "message": message,
        "details": _normalize_details(details),
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload), headers=headers)


def _parse_http_exception_detail(detail: Any, status_code: int) -> tuple[str, str, dict]:
    code = _default_code(status_code)
    message = _default_message(status_code)

    if isinstance(detail, dict):
        code = detail.get("code") or detail.get("error") or code
        message = detail.get("message") or detail.get("detail") or message
        return code, message, _normalize_details(detail.get("details"))

    if isinstance(detail, str) and detail:
        return code, detail, {}

    return code, message, {}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return _build_response(exc.status_code, exc.code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code, message, details = _parse_http_exception_detail(exc.detail, exc.status_code)
    return _build_response(exc.status_code, code, message, details, headers=getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _build_response(
        status_code=400,
        code="validation_error",
        message="Validation failed",
        details=flatten_errors(exc.errors()),
    )


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return _build_response(
        status_code=429,
        code="rate_limited",
        message=_default_message(429),
        details={"limit": str(getattr(exc, "detail", ""))},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _build_response(
        status_code=500,
        code="server_error",
        message="Internal server error",
        details={},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
