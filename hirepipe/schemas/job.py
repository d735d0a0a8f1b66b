from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from hirepipe.core.state_machine import JobStatus


class JobCreate(BaseModel):
    type: Optional[Any] = None
    payload: Optional[Any] = Field(default_factory=dict)


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    status: JobStatus
    payload: dict[str, Any]
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    attempts: int
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
