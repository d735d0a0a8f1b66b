from __future__ import annotations

from enum import Enum
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.models.event import CandidateEvent


def _label(value: Enum | str | None) -> str | None:
    if value is None:
        return None
    return value.value if isinstance(value, Enum) else str(value)


async def log_event(
    session: AsyncSession,
    *,
    candidate_id: str,
    action_type: str,
    related_entity_type: str = "candidate",
    related_entity_id: str | None = None,
    from_status: Enum | str | None = None,
    to_status: Enum | str | None = None,
    meta: dict[str, Any] | None = None,
) -> CandidateEvent:
    event = CandidateEvent(
        candidate_id=candidate_id,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
        action_type=action_type,
        from_status=_label(from_status),
        to_status=_label(to_status),
        meta=meta,
    )
    session.add(event)
    await session.flush()
    return event
