from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from hirepipe.core.state_machine import PrExerciseStatus


class PrCommentIn(BaseModel):
    file: Optional[Any] = None
    line: Optional[Any] = None
    comment: Optional[Any] = None


class PrFileOut(BaseModel):
    path: str
    language: Optional[str] = None
    content: str = ""
    diff: str = ""


class PrArtifactOut(BaseModel):
    """Candidate-visible PR: no ground-truth issues."""

    title: str
    description: str = ""
    files: list[PrFileOut] = Field(default_factory=list)


class PrComment(BaseModel):
    id: str
    file: str
    line: int
    comment: str
    createdAt: str


class PrSubmissionOut(BaseModel):
    comments: list[PrComment] = Field(default_factory=list)


class PrReviewStarted(BaseModel):
    exercise_id: str
    status: PrExerciseStatus
    created: bool
    job_id: Optional[str] = None


class PrReviewView(BaseModel):
    exercise_id: str
    status: PrExerciseStatus
    pr: Optional[PrArtifactOut] = None
    submission: PrSubmissionOut
    started_at: datetime
    submitted_at: Optional[datetime] = None


class PrCommentAdded(BaseModel):
    comment_id: str
    total_comments: int


class PrReviewSubmitted(BaseModel):
    exercise_id: str
    status: PrExerciseStatus
    total_comments: int
    submitted_at: datetime
