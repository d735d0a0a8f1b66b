from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hirepipe.core.datetime_utils import utcnow
from hirepipe.core.state_machine import PrExerciseStatus
from hirepipe.db.base import Base, new_id, status_enum


class PrExercise(Base):
    __tablename__ = "pr_exercises"
    __table_args__ = (UniqueConstraint("candidate_id", "assessment_id", name="uq_pr_exercise_candidate_assessment"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    candidate_id: Mapped[str] = mapped_column(String(36), ForeignKey("candidates.id"), nullable=False, index=True)
    assessment_id: Mapped[str] = mapped_column(String(36), ForeignKey("assessments.id"), nullable=False, index=True)

    status: Mapped[PrExerciseStatus] = mapped_column(
        status_enum(PrExerciseStatus, "pr_exercise_status_enum"),
        nullable=False,
        default=PrExerciseStatus.GENERATING,
    )
    # {title, description, files[], issues[]}; issues are never shown to the candidate.
    generated_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    # {comments: [{id, file, line, comment, created_at}]}
    submission: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=lambda: {"comments": []})

    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def comments(self) -> list[dict[str, Any]]:
        return list((self.submission or {}).get("comments") or [])

    @property
    def issues(self) -> list[dict[str, Any]]:
        return list((self.generated_data or {}).get("issues") or [])
