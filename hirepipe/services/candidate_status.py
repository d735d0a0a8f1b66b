from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.core.state_machine import CANDIDATE_GRAPH, CandidateStatus, can_transition
from hirepipe.models.candidate import Candidate
from hirepipe.services.events import log_event

logger = logging.getLogger("hirepipe.candidates")


@dataclass(frozen=True)
class CandidateTransitionResult:
    candidate_id: str
    from_status: CandidateStatus
    to_status: CandidateStatus
    changed: bool


async def advance_candidate(
    session: AsyncSession,
    candidate: Candidate,
    to_status: CandidateStatus,
    *,
    reason: str,
) -> CandidateTransitionResult:
    """Move the candidate forward if the table allows it, otherwise leave it alone.

    Phases can be taken in either order, so a move the table rejects is skipped
    and logged rather than raised. Status never regresses.
    """
    from_status = CandidateStatus(candidate.status)
    if not can_transition(CANDIDATE_GRAPH, from_status, to_status):
        logger.info(
            "candidate_transition_skipped",
            extra={
                "candidate_id": candidate.id,
                "from_status": from_status.value,
                "to_status": to_status.value,
                "reason": reason,
            },
        )
        return CandidateTransitionResult(candidate.id, from_status, from_status, False)

    candidate.status = to_status
    await log_event(
        session,
        candidate_id=candidate.id,
        action_type="candidate_status_changed",
        related_entity_type="candidate",
        related_entity_id=candidate.id,
        from_status=from_status,
        to_status=to_status,
        meta={"reason": reason},
    )
    return CandidateTransitionResult(candidate.id, from_status, to_status, True)
