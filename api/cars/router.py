"""
Car API endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from core import dependencies
from core.config import Settings
from core.db import RequestConnection

from . import service

router = APIRouter()


@router.get("/car")
async def list_cars(
    conn: RequestConnection = Depends(dependencies.get_connection),
) -> dict:
    """
    Active cars only (soft-deleted rows are excluded).
    """
    return await service.list_cars(conn)


@router.post("/car")
async def create_car(
    payload: Any = Body(default=None),
    conn: RequestConnection = Depends(dependencies.get_connection),
    settings: Settings = Depends(dependencies.get_app_settings),
) -> dict:
    return await service.create_car(conn, payload, settings=settings)


@router.put("/car")
async def update_car(
    payload: Any = Body(default=None),
    conn: RequestConnection = Depends(dependencies.get_connection),
    settings: Settings = Depends(dependencies.get_app_settings),
) -> dict:
    return await service.update_car(conn, payload, settings=settings)


@router.delete("/car/{car_id}")
async def delete_car(
    car_id: str,
    conn: RequestConnection = Depends(dependencies.get_connection),
    settings: Settings = Depends(dependencies.get_app_settings),
) -> dict:
    """
    Soft-delete: sets `deleted_flag = 1`, the row stays in the table.
    """
    return await service.delete_car(conn, car_id, settings=settings)
