from __future__ import annotations

import logging
from typing import Any, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.core.errors import ValidationError
from hirepipe.models.behavioral_signal import SIGNAL_TYPES, BehavioralSignal
from hirepipe.models.candidate import Candidate
from hirepipe.models.interview_session import InterviewSession
from hirepipe.schemas.behavioral import SignalBatchRecorded, SignalRecorded

logger = logging.getLogger("hirepipe.behavioral")

DEFAULT_BATCH_LIMIT = 100
_TYPE_LIST = ", ".join(sorted(SIGNAL_TYPES))


def _validate_signal(signal_type: Any, data: Any, *, prefix: str = "") -> tuple[str, dict[str, Any]]:
    if not isinstance(signal_type, str) or not signal_type:
        raise ValidationError(f"{prefix}Field 'signal_type' is required and must be a string")
    if signal_type not in SIGNAL_TYPES:
        raise ValidationError(f"{prefix}Invalid signal_type. Must be one of: {_TYPE_LIST}")
    if not isinstance(data, dict):
        raise ValidationError(f"{prefix}Field 'data' is required and must be an object")
    return signal_type, data


async def _check_session(session: AsyncSession, candidate: Candidate, session_id: Any, *, prefix: str = "") -> str | None:
    if session_id in (None, ""):
        return None
    if not isinstance(session_id, str):
        raise ValidationError(f"{prefix}Invalid session_id")
    owned = (
        await session.execute(
            select(InterviewSession.id).where(
                InterviewSession.id == session_id,
                InterviewSession.candidate_id == candidate.id,
            )
        )
    ).scalar_one_or_none()
    if owned is None:
        raise ValidationError(f"{prefix}Invalid session_id")
    return session_id


def _signal(candidate: Candidate, signal_type: str, data: dict[str, Any], session_id: str | None) -> BehavioralSignal:
    return BehavioralSignal(
        candidate_id=candidate.id,
        assessment_id=candidate.assessment_id,
        session_id=session_id,
        signal_type=signal_type,
        data=data,
    )


async def record_signal(
    session: AsyncSession,
    candidate: Candidate,
    signal_type: Any,
    data: Any,
    session_id: Any = None,
) -> SignalRecorded:
    signal_type, data = _validate_signal(signal_type, data)
    owned_session_id = await _check_session(session, candidate, session_id)

    row = _signal(candidate, signal_type, data, owned_session_id)
    session.add(row)
    await session.flush()
    total = (
        await session.execute(
            select(func.count(BehavioralSignal.id)).where(
                BehavioralSignal.candidate_id == candidate.id,
                BehavioralSignal.assessment_id == candidate.assessment_id,
            )
        )
    ).scalar_one()
    await session.commit()
    return SignalRecorded(signal_id=row.id, signal_type=signal_type, total_signals=int(total))


async def record_signals(
    session: AsyncSession,
    candidate: Candidate,
    signals: Any,
    *,
    limit: int = DEFAULT_BATCH_LIMIT,
) -> SignalBatchRecorded:
    """Insert a batch of signals; any invalid item rejects the whole batch."""
    if not isinstance(signals, Sequence) or isinstance(signals, (str, bytes)) or not signals:
        raise ValidationError("Field 'signals' is required and must be a non-empty array")
    if len(signals) > limit:
        raise ValidationError(f"Maximum {limit} signals per batch")

    rows: list[BehavioralSignal] = []
    for index, item in enumerate(signals):
        prefix = f"Signal at index {index}: "
        if not isinstance(item, dict):
            raise ValidationError(f"{prefix}must be an object")
        signal_type, data = _validate_signal(item.get("signal_type"), item.get("data"), prefix=prefix)
        owned_session_id = await _check_session(session, candidate, item.get("session_id"), prefix=prefix)
        rows.append(_signal(candidate, signal_type, data, owned_session_id))

    session.add_all(rows)
    await session.commit()
    logger.info("behavioral_batch_recorded", extra={"candidate_id": candidate.id, "count": len(rows)})
    return SignalBatchRecorded(inserted=len(rows), signal_ids=[row.id for row in rows])
