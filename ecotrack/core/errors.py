"""Error taxonomy and FastAPI handlers."""

import logging
from typing import Optional
from uuid import uuid4

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.requests import Request

from ecotrack.core.logging import get_request_id


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400


class NotFoundError(AppError, LookupError):
    code = "not_found"
    status_code = 404

    def __init__(self, message: str, *, record_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.record_id = record_id


class TransientIOError(AppError):
    """The document store could not be reached. Not retried."""
    code = "transient_io"
    status_code = 503

    def __init__(self, message: str, *, cause: Optional[BaseException] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.cause = cause


# Auth failure codes as reported by the auth provider
AUTH_USER_NOT_FOUND = "user-not-found"
AUTH_WRONG_PASSWORD = "wrong-password"
AUTH_EMAIL_IN_USE = "email-already-in-use"
AUTH_WEAK_PASSWORD = "weak-password"
AUTH_INVALID_EMAIL = "invalid-email"
AUTH_NOT_SIGNED_IN = "not-signed-in"
AUTH_UNKNOWN = "unknown"

_AUTH_STATUS = {
    AUTH_USER_NOT_FOUND: 401,
    AUTH_WRONG_PASSWORD: 401,
    AUTH_NOT_SIGNED_IN: 401,
    AUTH_EMAIL_IN_USE: 409,
    AUTH_WEAK_PASSWORD: 400,
    AUTH_INVALID_EMAIL: 400,
}


class AuthError(AppError):
    code = AUTH_UNKNOWN
    status_code = 401

    def __init__(self, code: str, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("status_code", _AUTH_STATUS.get(code, 401))
        super().__init__(message or code, code=code, **kwargs)


def _extract_request_id(request: Request, fallback: Optional[str] = None) -> str:
    return (
        getattr(request.state, "request_id", None)
        or get_request_id()
        or fallback
        or str(uuid4())
    )


def _error_payload(code: str, message: str, request_id: str) -> dict:
    return {
        "error": {"code": code, "message": message, "request_id": request_id},
        "detail": message,
    }


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _extract_request_id(request)
    payload = _error_payload(exc.code, exc.message, rid)
    logger = logging.getLogger("ecotrack")
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        "app.error",
        extra={"request_id": rid, "error_code": exc.code, "error_message": exc.message, "status": exc.status_code},
    )
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def http_error_handler(request: Request, exc: HTTPException):
    rid = _extract_request_id(request)
    code = "not_found" if exc.status_code == 404 else "http_error"
    message = exc.detail if exc.detail else "HTTP error"
    payload = _error_payload(code, message, rid)
    logger = logging.getLogger("ecotrack")
    logger.warning("http.error", extra={"request_id": rid, "error_code": code, "status": exc.status_code})
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _extract_request_id(request)
    logger = logging.getLogger("ecotrack")
    logger.error("unhandled.exception", exc_info=True, extra={"request_id": rid, "error_code": "internal_error"})
    payload = _error_payload("internal_error", "Unexpected error", rid)
    response = JSONResponse(status_code=500, content=payload)
    response.headers["x-request-id"] = rid
    return response
