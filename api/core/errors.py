"""
API error type and the handlers that render it.

Every failure a client sees has the same body: `{"error": ..., "details": ...}`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ApiError(Exception):
    """Failure with the status code and message the client should get."""

    def __init__(self, *, status_code: int, error: str, details: str = "") -> None:
        self.status_code = status_code
        self.error = error
        self.details = details
        super().__init__(error)


def error_body(error: str, details: str) -> dict[str, str]:
    return {"error": error, "details": details}


def failure_message(exc: BaseException) -> str:
    """
    Message for `details`; exceptions raised without one (timeouts) fall back to their type name.
    """
    return str(exc) or type(exc).__name__


def describe_errors(errors: Sequence[Any]) -> str:
    """
    Flatten pydantic-style error dicts into `loc: msg; loc: msg`.
    """
    messages = []
    for err in errors:
        location = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{location}: {err.get('msg', 'invalid')}" if location else str(err.get("msg")))
    return "; ".join(messages)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(ApiError)
    async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.error, exc.details))

    # Malformed JSON never reaches a handler; answer like a body parser would.
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=error_body("Bad Request: Malformed request body", describe_errors(exc.errors())),
        )
