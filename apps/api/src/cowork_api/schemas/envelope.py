from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiEnvelope(BaseModel, Generic[DataT]):
    """Success wrapper shared by member-facing routes."""

    success: bool = True
    data: DataT


class ApiError(BaseModel):
    success: bool = False
    error: str
    details: str | None = None
