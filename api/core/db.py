"""
Async database access helpers (raw SQL) using asyncpg.

The pool is created once per process by the app factory (see `api/main.py`)
and handed around explicitly; there is no module-level pool.

SQL parameter style:
- asyncpg itself only understands positional placeholders: $1, $2, $3, ...
- `RequestConnection` adds named placeholders (`:make`, `:id`) on top, once
  `named_placeholders` is switched on for the connection.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

import asyncpg

from .config import Settings

# `:name` but not the second colon of a `::type` cast.
_NAMED_PARAM_RE = re.compile(r"(?<![:\w]):([A-Za-z_][A-Za-z0-9_]*)")

# Server default since PostgreSQL 9.1, so this pins rather than changes anything.
# Not an equivalent of MySQL TRADITIONAL mode; PostgreSQL has no sql_mode.
STRICT_MODE_SQL = "SET SESSION standard_conforming_strings = on"
TIME_ZONE_SQL = "SET SESSION TIME ZONE INTERVAL '{offset}' HOUR TO MINUTE"


async def create_pool(settings: Settings) -> asyncpg.Pool:
    return await asyncpg.create_pool(
        dsn=settings.dsn(),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
    )


async def close_pool(pool: asyncpg.Pool) -> None:
    await pool.close()


def bind_named(sql: str, params: Mapping[str, Any]) -> tuple[str, list[Any]]:
    """
    Rewrite `:name` placeholders to asyncpg's `$n` and collect the arguments.

    A name used more than once maps to the same `$n`.
    """
    positions: dict[str, int] = {}
    args: list[Any] = []

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in positions:
            if name not in params:
                raise KeyError(f"Missing value for named parameter :{name}")
            args.append(params[name])
            positions[name] = len(args)
        return f"${positions[name]}"

    return _NAMED_PARAM_RE.sub(_replace, sql), args


def affected_rows(status: str) -> int:
    """
    Row count from an asyncpg command status such as `UPDATE 3` or `INSERT 0 1`.
    """
    parts = (status or "").split()
    if not parts:
        return 0
    try:
        return int(parts[-1])
    except ValueError:
        return 0


class RequestConnection:
    """
    One pooled connection, owned by a single request from acquire to release.
    """

    def __init__(self, connection: asyncpg.Connection) -> None:
        self.connection = connection
        self.named_placeholders = False

    def _prepare(self, sql: str, params: Mapping[str, Any] | None) -> tuple[str, list[Any]]:
        if params is None:
            return sql, []
        if not self.named_placeholders:
            raise RuntimeError("Named placeholders are not enabled on this connection.")
        return bind_named(sql, params)

    async def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> str:
        """
        Run a statement (INSERT/UPDATE/DDL/SET). Returns the command status.
        """
        query, args = self._prepare(sql, params)
        return await self.connection.execute(query, *args)

    async def fetch_all(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        query, args = self._prepare(sql, params)
        rows = await self.connection.fetch(query, *args)
        return [dict(r) for r in rows]

    async def fetch_one(self, sql: str, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        query, args = self._prepare(sql, params)
        row = await self.connection.fetchrow(query, *args)
        return dict(row) if row is not None else None


async def acquire(pool: asyncpg.Pool, *, timeout: float | None = None) -> RequestConnection:
    connection = await pool.acquire(timeout=timeout)
    return RequestConnection(connection)


async def release(pool: asyncpg.Pool, conn: RequestConnection) -> None:
    await pool.release(conn.connection)


async def configure_session(conn: RequestConnection, *, time_zone: str) -> None:
    """
    Per-request session setup. Runs on every checkout; pooled connections are
    not assumed to remember an earlier configuration.
    """
    conn.named_placeholders = True
    await conn.execute(STRICT_MODE_SQL)
    await conn.execute(TIME_ZONE_SQL.format(offset=time_zone))
