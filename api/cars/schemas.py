"""
Pydantic schemas for car request bodies (enforced in strict validation mode).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CarCreateRequest(BaseModel):
    make: str = Field(..., min_length=1, max_length=255)
    model: str = Field(..., min_length=1, max_length=255)
    year: int


class CarUpdateRequest(CarCreateRequest):
    id: int


class CarIdPath(BaseModel):
    id: int
