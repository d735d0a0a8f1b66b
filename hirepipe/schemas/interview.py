from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from hirepipe.core.state_machine import InterviewStatus


class InterviewAnswerIn(BaseModel):
    answer: Optional[Any] = None


class InterviewStarted(BaseModel):
    session_id: str
    status: InterviewStatus
    question: str
    question_number: int
    total_questions: int
    started_at: datetime


class InterviewTurn(BaseModel):
    session_id: str
    status: InterviewStatus
    question: Optional[str] = None
    question_number: int
    total_questions: int
    message: Optional[str] = None


class InterviewStatusOut(BaseModel):
    has_session: bool
    session_id: Optional[str] = None
    # "not_started" when the candidate has no session yet.
    status: str
    question_number: int = 0
    total_questions: int
    current_question: Optional[str] = None
    answered_count: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
