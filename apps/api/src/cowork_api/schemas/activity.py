from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ActivityLogEntry(BaseModel):
    id: UUID
    action: str
    description: str
    referenceId: Optional[str]
    referenceType: Optional[str]
    metadata: dict[str, Any] = Field(default_factory=dict)
    isSuccess: bool
    errorMessage: Optional[str]
    createdAt: Optional[datetime]


class ActivityLogData(BaseModel):
    logs: list[ActivityLogEntry]
