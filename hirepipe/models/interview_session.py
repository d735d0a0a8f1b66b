from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hirepipe.core.datetime_utils import utcnow
from hirepipe.core.state_machine import InterviewStatus
from hirepipe.db.base import Base, new_id, status_enum


def active_slot_for(candidate_id: str, assessment_id: str) -> str:
    return f"{candidate_id}:{assessment_id}"


class InterviewSession(Base):
    __tablename__ = "interview_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    candidate_id: Mapped[str] = mapped_column(String(36), ForeignKey("candidates.id"), nullable=False, index=True)
    assessment_id: Mapped[str] = mapped_column(String(36), ForeignKey("assessments.id"), nullable=False, index=True)

    status: Mapped[InterviewStatus] = mapped_column(
        status_enum(InterviewStatus, "interview_status_enum"),
        nullable=False,
        default=InterviewStatus.PENDING,
    )
    # [{role, content, question_number?, timestamp}]
    conversation: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    # {tech_stack, rubric, role, total_questions, current_question}
    context: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Set while pending/in_progress, NULL once completed. The unique index is
    # what allows only one active session per candidate and assessment.
    active_slot: Mapped[str | None] = mapped_column(String(80), nullable=True, unique=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __mapper_args__ = {"version_id_col": version}

    @property
    def current_question(self) -> int:
        return int((self.context or {}).get("current_question") or 0)

    @property
    def total_questions(self) -> int:
        return int((self.context or {}).get("total_questions") or 0)
