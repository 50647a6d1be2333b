"""
Error Handlers
Map accounting core errors onto HTTP responses
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..exceptions import (
    AuthorizationError,
    ConcurrencyConflictError,
    LedgerbookError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from ..utils.logger import logger
from ..views.json_view import JsonView

STATUS_BY_ERROR = [
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (StateConflictError, 409),
    (ConcurrencyConflictError, 409),
]


def status_for(exc: LedgerbookError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def ledgerbook_error_handler(request: Request, exc: LedgerbookError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=JsonView.error(exc.code, exc.message, exc.details)
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerbookError, ledgerbook_error_handler)
