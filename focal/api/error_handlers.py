"""
Exception handlers for FastAPI.
Every error leaves the API in the same ``{"success": false, "error": ...}`` envelope.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from focal.core.exceptions import (
    AuthenticationError,
    ExtractionFailedError,
    FocalError,
    QuotaExceededError,
    ValidationError,
)
from focal.core.observability import sentry_capture

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message, **extra})


def focal_validation_handler(request: Request, exc: ValidationError):
    return error_response(HTTP_400_BAD_REQUEST, exc.message)


def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
    return error_response(HTTP_400_BAD_REQUEST, message)


def authentication_handler(request: Request, exc: AuthenticationError):
    return error_response(HTTP_401_UNAUTHORIZED, exc.message)


def quota_exceeded_handler(request: Request, exc: QuotaExceededError):
    return error_response(HTTP_429_TOO_MANY_REQUESTS, exc.message)


def extraction_failed_handler(request: Request, exc: ExtractionFailedError):
    return error_response(HTTP_500_INTERNAL_SERVER_ERROR, exc.message)


def focal_error_handler(request: Request, exc: FocalError):
    logger.error("Unmapped domain error on %s: %s", request.url.path, exc.message)
    return error_response(HTTP_500_INTERNAL_SERVER_ERROR, exc.message)


def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    sentry_capture(exc)
    return error_response(HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, focal_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AuthenticationError, authentication_handler)
    app.add_exception_handler(QuotaExceededError, quota_exceeded_handler)
    app.add_exception_handler(ExtractionFailedError, extraction_failed_handler)
    app.add_exception_handler(FocalError, focal_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
