"""Mapping from domain failures to HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..domain.errors import (
    AccountError,
    DuplicateEmail,
    InvalidCredentials,
    InvalidToken,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Fixed client messages; only ValidationError forwards its own text.
_ERROR_RESPONSES: dict[type[AccountError], tuple[int, str | None]] = {
    ValidationError: (status.HTTP_400_BAD_REQUEST, None),
    DuplicateEmail: (status.HTTP_409_CONFLICT, "email already registered"),
    InvalidCredentials: (status.HTTP_401_UNAUTHORIZED, "invalid credentials"),
    InvalidToken: (status.HTTP_401_UNAUTHORIZED, "unauthorized"),
    StorageError: (status.HTTP_500_INTERNAL_SERVER_ERROR, "internal error"),
}


def failure(status_code: int, message: str) -> JSONResponse:
    """Render the uniform ``{"success": false, "message": ...}`` error body."""
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _resolve(exc: AccountError) -> tuple[int, str]:
    for error_type in type(exc).__mro__:
        if error_type in _ERROR_RESPONSES:
            status_code, message = _ERROR_RESPONSES[error_type]
            return status_code, message if message is not None else str(exc)
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "internal error"


async def handle_account_error(request: Request, exc: AccountError) -> JSONResponse:
    status_code, message = _resolve(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected (%s)", request.method, request.url.path, type(exc).__name__)
    return failure(status_code, message)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return failure(exc.status_code, str(exc.detail))


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("%s %s rejected: malformed body", request.method, request.url.path)
    return failure(status.HTTP_400_BAD_REQUEST, "invalid request body")


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that give every failure the same body shape."""
    app.add_exception_handler(AccountError, handle_account_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
