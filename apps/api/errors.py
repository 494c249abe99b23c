"""Map service errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from services.errors import (
    AlreadyFinalizedError,
    CoreError,
    DuplicateSwipeError,
    ExpiredError,
    InvalidStateError,
    MatchAlreadyExistsError,
    NoActiveIntentError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[CoreError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
    ExpiredError: status.HTTP_410_GONE,
    DuplicateSwipeError: status.HTTP_409_CONFLICT,
    MatchAlreadyExistsError: status.HTTP_409_CONFLICT,
    AlreadyFinalizedError: status.HTTP_409_CONFLICT,
    NoActiveIntentError: status.HTTP_403_FORBIDDEN,
}


async def core_error_handler(request: Request, exc: CoreError) -> JSONResponse:
    """Respond with the error code only."""
    status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.code})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CoreError, core_error_handler)
