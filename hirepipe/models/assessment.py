from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hirepipe.core.datetime_utils import utcnow
from hirepipe.core.state_machine import AssessmentStatus
from hirepipe.db.base import Base, new_id, status_enum


class Assessment(Base):
    __tablename__ = "assessments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(String(255), nullable=False)

    # List of {name, description, weight, levels}.
    rubric: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    # {"tech_stack": [...]}
    config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    status: Mapped[AssessmentStatus] = mapped_column(
        status_enum(AssessmentStatus, "assessment_status_enum"),
        nullable=False,
        default=AssessmentStatus.DRAFT,
        index=True,
    )
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def tech_stack(self) -> list[str]:
        raw = (self.config or {}).get("tech_stack") or []
        return [str(item) for item in raw if str(item).strip()]
