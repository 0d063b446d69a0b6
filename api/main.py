from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from cars import repository as car_repository
from cars import router as cars_router
from core import db
from core.config import Settings, get_settings
from core.errors import register_error_handlers
from core.log import configure_logging
from core.middleware import install_connection_middleware

WELCOME_TEXT = "Welcome to the Car Management API!"

logger = logging.getLogger(__name__)


async def _ensure_schema(pool: Any, settings: Settings) -> None:
    conn = await db.acquire(pool, timeout=settings.db_pool_acquire_timeout)
    try:
        await car_repository.ensure_table(conn)
    finally:
        await db.release(pool, conn)


def create_app(settings: Settings | None = None, *, pool: Any | None = None) -> FastAPI:
    """
    Build the API. An injected `pool` is used as-is and left open on shutdown;
    otherwise the pool is created on startup and closed on shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.pool is not None:
            yield
            return

        # One pool per process.
        app.state.pool = await db.create_pool(settings)
        try:
            if settings.db_create_schema:
                await _ensure_schema(app.state.pool, settings)
            yield
        finally:
            await db.close_pool(app.state.pool)
            app.state.pool = None

    app = FastAPI(title="Car Management API", lifespan=lifespan)
    app.state.settings = settings
    app.state.pool = pool

    install_connection_middleware(app, settings)

    # Added last so it wraps everything, including connection failures.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(cars_router.router, tags=["cars"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return WELCOME_TEXT

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Server started at http://localhost:%s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
