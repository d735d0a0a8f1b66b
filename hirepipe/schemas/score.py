from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScoreRequested(BaseModel):
    job_id: str
    candidate_id: str
    assessment_id: str


class ScoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    candidate_id: str
    assessment_id: str
    overall_score: Optional[float] = None
    breakdown: dict[str, Any]
    reasoning: str
    meta: dict[str, Any] = Field(serialization_alias="metadata")
    scored_at: datetime
