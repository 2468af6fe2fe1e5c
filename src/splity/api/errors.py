"""Application-wide exception handlers."""
import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from splity.api.cors import allowed_methods, method_not_allowed_response
from splity.core.auth import AuthenticationError
from splity.schemas.base import BLANK_ERROR, NIL_UUID_ERROR
from splity.services.exceptions import AggregateDecodeError

logger = logging.getLogger(__name__)

INTERNAL_SERVER_ERROR = "Internal server error"
INVALID_JSON = "Invalid JSON format"

# Validation error types reported as a missing field
MISSING_ERROR_TYPES = frozenset({"missing", BLANK_ERROR, NIL_UUID_ERROR})
_REQUEST_LOCATIONS = frozenset({"body", "query", "path", "header", "cookie"})


def _field_name(loc: Sequence[Any]) -> str:
    parts = list(loc)
    if parts and parts[0] in _REQUEST_LOCATIONS:
        parts = parts[1:]
    return ".".join(str(part) for part in parts)


def _message(error: dict[str, Any]) -> str:
    msg = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")
    field = _field_name(error.get("loc", ()))
    return f"{field}: {msg}" if field else msg


def describe_validation_errors(errors: Sequence[dict[str, Any]]) -> str:
    """
    Summarize request validation errors as one client-facing message.

    Malformed JSON wins over everything else, then missing fields (blank
    strings and nil ids count as missing), then per-field messages.
    """
    if any(error.get("type") == "json_invalid" for error in errors):
        return INVALID_JSON

    missing = [
        _field_name(error.get("loc", ()))
        for error in errors
        if error.get("type") in MISSING_ERROR_TYPES
    ]
    if missing:
        named = [name for name in dict.fromkeys(missing) if name]
        if not named:
            return "Request body is required"
        return f"Missing required fields: {', '.join(named)}"

    return "; ".join(_message(error) for error in errors)


async def validation_exception_handler(
    _request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Report request validation failures as 400 with a readable message."""
    return JSONResponse(
        status_code=400,
        content={"detail": describe_validation_errors(exc.errors())},
    )


async def method_not_allowed_handler(
    request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    """
    Report unsupported methods with every method served at the path.

    Other HTTP exceptions keep FastAPI's default rendering.
    """
    if exc.status_code != 405:
        return await http_exception_handler(request, exc)

    return method_not_allowed_response(
        request.method, allowed_methods(request.app, request.scope),
    )


async def authentication_exception_handler(
    _request: Request, exc: AuthenticationError,
) -> JSONResponse:
    """Reject unauthenticated requests with 401."""
    return JSONResponse(
        status_code=401,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def aggregate_decode_exception_handler(
    request: Request, exc: AggregateDecodeError,
) -> JSONResponse:
    """A malformed database document is a server fault; details stay in the log."""
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": INTERNAL_SERVER_ERROR})


async def unhandled_exception_handler(request: Request, _exc: Exception) -> JSONResponse:
    """Log unexpected errors and hide their details from the client."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": INTERNAL_SERVER_ERROR})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on an application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)
    app.add_exception_handler(AuthenticationError, authentication_exception_handler)
    app.add_exception_handler(AggregateDecodeError, aggregate_decode_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
