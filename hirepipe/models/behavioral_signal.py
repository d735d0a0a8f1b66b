from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from hirepipe.core.datetime_utils import utcnow
from hirepipe.db.base import Base, new_id

SIGNAL_TYPES: frozenset[str] = frozenset(
    {
        "typing_rhythm",
        "paste_detection",
        "tab_focus",
        "response_timing",
        "navigation",
        "interaction",
    }
)


class BehavioralSignal(Base):
    __tablename__ = "behavioral_signals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    candidate_id: Mapped[str] = mapped_column(String(36), ForeignKey("candidates.id"), nullable=False, index=True)
    assessment_id: Mapped[str] = mapped_column(String(36), ForeignKey("assessments.id"), nullable=False, index=True)
    session_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    signal_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
