"""Map the error taxonomy to HTTP.

This is the only module that knows both ``ChangemakerError.kind`` and
status codes.  Routes and services raise typed errors and never build
HTTPExceptions for domain failures.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from changemaker.core.errors import ChangemakerError

STATUS_BY_KIND: dict[str, int] = {
    "unauthorized": 401,
    "access_denied": 403,
    "not_found": 404,
    "validation": 422,
    "conflict": 409,
    "database": 500,
}


def status_for(exc: ChangemakerError) -> int:
    return STATUS_BY_KIND.get(exc.kind, 500)


async def _handle_changemaker_error(
    _request: Request, exc: ChangemakerError
) -> JSONResponse:
    code = status_for(exc)
    headers = {"WWW-Authenticate": "Bearer"} if code == 401 else None
    if code >= 500:
        # The cause was already logged where it was wrapped.
        message = "Internal server error"
    else:
        message = exc.message
    return JSONResponse(
        status_code=code,
        content={"detail": message, "code": exc.kind},
        headers=headers,
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ChangemakerError, _handle_changemaker_error)  # type: ignore[arg-type]
