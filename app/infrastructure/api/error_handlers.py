"""Maps domain errors to HTTP responses in one place."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.domain.errors import (
    DispatchError,
    InvalidInput,
    InvalidTransition,
    NotACandidate,
    NotCancellable,
    PermissionDenied,
    RateLimitExceeded,
    RequestNotFound,
    UnknownCategory,
)

logger = logging.getLogger(__name__)

# most specific first
STATUS_BY_ERROR: list[tuple[type[DispatchError], int]] = [
    (InvalidInput, 400),
    (NotCancellable, 400),
    (RequestNotFound, 404),
    (PermissionDenied, 403),
    (NotACandidate, 403),
    (InvalidTransition, 409),
    (RateLimitExceeded, 429),
    (UnknownCategory, 500),
]


def status_for(exc: DispatchError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content={"error": exc.code, "detail": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "InvalidInput", "detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DispatchError, dispatch_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
