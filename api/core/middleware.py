"""
Request-scoped database connection middleware.

Every request gets exactly one pooled connection:
acquire -> configure session -> handler -> release.
The connection goes back to the pool on every path, including failures.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from . import db
from .config import Settings
from .errors import error_body, failure_message

CONNECTION_ERROR = "Internal Server Error: Unable to connect to cars database"

logger = logging.getLogger(__name__)


def install_connection_middleware(app: FastAPI, settings: Settings) -> None:
    """
    Register the middleware on `app`. The pool is read from `app.state.pool`
    per request, so it can be created later by the lifespan handler.
    """

    @app.middleware("http")
    async def request_connection(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        pool = request.app.state.pool
        conn: db.RequestConnection | None = None
        try:
            if pool is None:
                raise RuntimeError("DB pool is not initialized.")
            conn = await db.acquire(pool, timeout=settings.db_pool_acquire_timeout)
            await db.configure_session(conn, time_zone=settings.db_time_zone)
            request.state.db = conn
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "request_connection_failed method=%s path=%s",
                request.method,
                request.url.path,
            )
            return JSONResponse(
                status_code=500,
                content=error_body(CONNECTION_ERROR, failure_message(exc)),
            )
        finally:
            if conn is not None:
                await db.release(pool, conn)
