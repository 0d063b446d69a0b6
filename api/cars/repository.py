"""
Car persistence (raw SQL, named placeholders).

Every function takes the request's connection explicitly; nothing here
checks connections in or out.
"""

from __future__ import annotations

from typing import Any

from core import db

CAR_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS car (
  id            SERIAL PRIMARY KEY,
  make          VARCHAR(255) NOT NULL,
  model         VARCHAR(255) NOT NULL,
  year          INTEGER NOT NULL,
  deleted_flag  SMALLINT NOT NULL DEFAULT 0,
  date_created  TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""


async def ensure_table(conn: db.RequestConnection) -> None:
    await conn.execute(CAR_TABLE_DDL)


async def list_active_cars(conn: db.RequestConnection) -> list[dict[str, Any]]:
    """
    Cars that are not soft-deleted, oldest id first.
    """
    return await conn.fetch_all(
        """
        SELECT id, make, model, year, deleted_flag, date_created
        FROM car
        WHERE deleted_flag = 0
        ORDER BY id
        """
    )


async def insert_car(conn: db.RequestConnection, *, make: Any, model: Any, year: Any) -> dict[str, Any]:
    row = await conn.fetch_one(
        """
        INSERT INTO car (make, model, year, deleted_flag)
        VALUES (:make, :model, :year, 0)
        RETURNING id, date_created
        """,
        {"make": make, "model": model, "year": year},
    )
    if row is None:
        raise RuntimeError("Failed to insert car.")
    return row


async def update_car(conn: db.RequestConnection, *, car_id: Any, make: Any, model: Any, year: Any) -> int:
    """
    Overwrite make/model/year. Returns the number of rows matched (0 for an unknown id).
    """
    status = await conn.execute(
        """
        UPDATE car
        SET make = :make, model = :model, year = :year
        WHERE id = :id
        """,
        {"id": car_id, "make": make, "model": model, "year": year},
    )
    return db.affected_rows(status)


async def soft_delete_car(conn: db.RequestConnection, car_id: Any) -> int:
    """
    Flag a car as deleted. The row itself is kept.
    """
    status = await conn.execute(
        """
        UPDATE car
        SET deleted_flag = 1
        WHERE id = :id
        """,
        {"id": car_id},
    )
    return db.affected_rows(status)
