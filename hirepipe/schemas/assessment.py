from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from hirepipe.core.state_machine import AssessmentStatus, CandidateStatus


class AssessmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    role: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    tech_stack: list[str] = Field(default_factory=list)
    rubric: Optional[list[dict[str, Any]]] = None
    status: AssessmentStatus = AssessmentStatus.DRAFT
    created_by: Optional[str] = Field(default=None, max_length=255)
    generate_rubric: bool = False


class AssessmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    role: str
    rubric: list[dict[str, Any]]
    config: dict[str, Any]
    status: AssessmentStatus
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AssessmentCreated(AssessmentOut):
    rubric_job_id: Optional[str] = None


class CandidateInvite(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    metadata: dict[str, Any] = Field(default_factory=dict)


class CandidateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    assessment_id: str
    name: str
    email: str
    status: CandidateStatus
    created_at: datetime


class CandidateInvited(CandidateOut):
    access_token: str


class CandidateSessionOut(BaseModel):
    candidate_id: str
    name: str
    email: str
    status: CandidateStatus
    assessment_id: str
    assessment_title: str
    assessment_role: str
    assessment_description: Optional[str] = None
