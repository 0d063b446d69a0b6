"""
Car business logic.

Scope:
- map request bodies to column values (lenient by default, schema-checked in strict mode)
- run one repository call per operation
- turn any failure into an `ApiError` carrying the underlying message

Update and delete on an unknown id are not errors by default: the statement
matches zero rows and the caller still gets `success: true`. That case is
logged, and `CAR_REPORT_MISSING_ROWS` turns it into a 404.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from core import db
from core.config import Settings
from core.errors import ApiError, describe_errors, failure_message

from . import repository, schemas

LIST_FAILED = "Internal Server Error: Failed to retrieve car data"
CREATE_FAILED = "Internal Server Error: Failed to create car"
UPDATE_FAILED = "Internal Server Error: Failed to update car"
DELETE_FAILED = "Internal Server Error: Failed to delete car"
INVALID_PAYLOAD = "Bad Request: Invalid car payload"
CAR_NOT_FOUND = "Not Found: No car with that id"

logger = logging.getLogger(__name__)


def _loose_int(value: Any) -> Any:
    """
    Numeric strings become ints, anything else is left for the database to reject.
    """
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return value
    return value


def _validated(schema: type[BaseModel], payload: Any) -> dict[str, Any]:
    try:
        return schema.model_validate(payload).model_dump()
    except ValidationError as exc:
        raise ApiError(status_code=400, error=INVALID_PAYLOAD, details=describe_errors(exc.errors())) from exc


def _body_fields(payload: Any, names: tuple[str, ...]) -> dict[str, Any]:
    body = payload if isinstance(payload, dict) else {}
    fields = {name: body.get(name) for name in names}
    for name in ("id", "year"):
        if name in fields:
            fields[name] = _loose_int(fields[name])
    return fields


def create_fields(payload: Any, *, strict: bool) -> dict[str, Any]:
    if strict:
        return _validated(schemas.CarCreateRequest, payload)
    return _body_fields(payload, ("make", "model", "year"))


def update_fields(payload: Any, *, strict: bool) -> dict[str, Any]:
    if strict:
        return _validated(schemas.CarUpdateRequest, payload)
    return _body_fields(payload, ("id", "make", "model", "year"))


def delete_id(raw_id: str, *, strict: bool) -> Any:
    if strict:
        return _validated(schemas.CarIdPath, {"id": raw_id})["id"]
    return _loose_int(raw_id)


def _check_matched(affected: int, car_id: Any, *, action: str, settings: Settings) -> None:
    if affected > 0:
        return
    logger.warning("car_%s_no_rows id=%s", action, car_id)
    if settings.car_report_missing_rows:
        raise ApiError(status_code=404, error=CAR_NOT_FOUND, details=f"No car matched id {car_id!r}.")


async def list_cars(conn: db.RequestConnection) -> dict:
    try:
        cars = await repository.list_active_cars(conn)
    except Exception as exc:
        logger.exception("car_list_failed")
        raise ApiError(status_code=500, error=LIST_FAILED, details=failure_message(exc)) from exc
    return {"cars": cars}


async def create_car(conn: db.RequestConnection, payload: Any, *, settings: Settings) -> dict:
    fields = create_fields(payload, strict=settings.car_strict_validation)
    try:
        row = await repository.insert_car(
            conn,
            make=fields["make"],
            model=fields["model"],
            year=fields["year"],
        )
    except Exception as exc:
        logger.exception("car_create_failed")
        raise ApiError(status_code=500, error=CREATE_FAILED, details=failure_message(exc)) from exc

    logger.info("car_created id=%s", row["id"])
    return {
        "id": row["id"],
        "make": fields["make"],
        "model": fields["model"],
        "year": fields["year"],
        "success": True,
    }


async def update_car(conn: db.RequestConnection, payload: Any, *, settings: Settings) -> dict:
    fields = update_fields(payload, strict=settings.car_strict_validation)
    try:
        affected = await repository.update_car(
            conn,
            car_id=fields["id"],
            make=fields["make"],
            model=fields["model"],
            year=fields["year"],
        )
    except Exception as exc:
        logger.exception("car_update_failed id=%s", fields["id"])
        raise ApiError(status_code=500, error=UPDATE_FAILED, details=failure_message(exc)) from exc

    _check_matched(affected, fields["id"], action="update", settings=settings)
    logger.info(
        "car_updated id=%s make=%s model=%s year=%s",
        fields["id"],
        fields["make"],
        fields["model"],
        fields["year"],
    )
    return {
        "id": fields["id"],
        "make": fields["make"],
        "model": fields["model"],
        "year": fields["year"],
        "success": True,
    }


async def delete_car(conn: db.RequestConnection, raw_id: str, *, settings: Settings) -> dict:
    car_id = delete_id(raw_id, strict=settings.car_strict_validation)
    try:
        affected = await repository.soft_delete_car(conn, car_id)
    except Exception as exc:
        logger.exception("car_delete_failed id=%s", car_id)
        raise ApiError(status_code=500, error=DELETE_FAILED, details=failure_message(exc)) from exc

    _check_matched(affected, car_id, action="delete", settings=settings)
    logger.info("car_deleted id=%s", car_id)
    return {"success": True}
