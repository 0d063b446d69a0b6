"""
FastAPI dependencies shared by feature routers.
"""

from __future__ import annotations

from fastapi import Request

from .config import Settings
from .db import RequestConnection


def get_connection(request: Request) -> RequestConnection:
    """
    The connection the middleware checked out for this request.
    """
    conn = getattr(request.state, "db", None)
    if conn is None:
        raise RuntimeError("No request-scoped database connection. Is the connection middleware installed?")
    return conn


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
