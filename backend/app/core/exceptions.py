"""Domain errors and their HTTP mapping."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ClassSeatError(Exception):
    """Base class for errors reported to API callers."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ClassSeatError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationFailure(ClassSeatError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Unauthenticated(ClassSeatError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(ClassSeatError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ClassSeatError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ClassSeatError):
    status_code = status.HTTP_409_CONFLICT


async def domain_error_handler(request: Request, exc: ClassSeatError) -> JSONResponse:
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({".".join(str(part) for part in error["loc"][1:]) for error in exc.errors()})
    logger.warning("%s %s -> invalid request fields %s", request.method, request.url.path, fields)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "fields": fields},
    )


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


EXCEPTION_HANDLERS = {
    ClassSeatError: domain_error_handler,
    RequestValidationError: validation_error_handler,
    SQLAlchemyError: internal_error_handler,
    Exception: internal_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
