"""
tsg.api.errors

Maps the service error taxonomy onto HTTP responses.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from tsg.errors import ErrorClass, TsgError
from tsg.observability.logging import get_logger

log = get_logger(__name__)

STATUS_BY_CLASS: dict[ErrorClass, int] = {
    ErrorClass.not_found: HTTP_404_NOT_FOUND,
    ErrorClass.bad_request: HTTP_400_BAD_REQUEST,
    ErrorClass.server_error: HTTP_500_INTERNAL_SERVER_ERROR,
}


async def _handle_tsg_error(_: Request, exc: TsgError) -> JSONResponse:
    status = STATUS_BY_CLASS[exc.error_class]
    if exc.error_class is ErrorClass.server_error:
        log.error("request_failed", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status,
        content={"detail": str(exc), "error": exc.error_class.value},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TsgError, _handle_tsg_error)  # type: ignore[arg-type]
