"""Composite candidate scoring from interview, PR review and behavioral evidence.

The LLM grades each component; the weighted composite is computed here so that
renormalizing over missing components does not depend on model arithmetic.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.core.datetime_utils import isoformat_z
from hirepipe.core.errors import FatalError, UpstreamError
from hirepipe.core.state_machine import CandidateStatus
from hirepipe.models.assessment import Assessment
from hirepipe.models.behavioral_signal import BehavioralSignal
from hirepipe.models.candidate import Candidate
from hirepipe.models.interview_session import InterviewSession
from hirepipe.models.pr_exercise import PrExercise
from hirepipe.models.score import Score
from hirepipe.services.candidate_status import advance_candidate
from hirepipe.services.llm import TextGenerator, parse_json_response
from hirepipe.services.prompts.scoring import build_scoring_prompt

logger = logging.getLogger("hirepipe.scoring")

COMPONENT_WEIGHTS: dict[str, float] = {"interview": 0.40, "pr_review": 0.35, "behavioral": 0.25}
INSUFFICIENT_EVIDENCE_FLAG = "insufficient-evidence"

_SCORE_KEYS = {
    "interview": "interview_score",
    "pr_review": "pr_review_score",
    "behavioral": "behavioral_score",
}


@dataclass(frozen=True)
class Evidence:
    interview_conversation: list[dict[str, Any]]
    pr_issues: list[dict[str, Any]]
    pr_comments: list[dict[str, Any]]
    behavioral_signals: list[dict[str, Any]]

    def available(self) -> dict[str, bool]:
        return {
            "interview": any(message.get("role") == "candidate" for message in self.interview_conversation),
            "pr_review": bool(self.pr_comments),
            "behavioral": bool(self.behavioral_signals),
        }


def component_score(value: Any) -> float | None:
    """Coerce a model-reported component score to 0-100, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or math.isnan(value):
        return None
    return round(min(max(float(value), 0.0), 100.0), 2)


def composite_score(
    components: Mapping[str, float | None],
    weights: Mapping[str, float] = COMPONENT_WEIGHTS,
) -> float | None:
    """Weighted mean over the components that have a score.

    Missing components drop out and the remaining weights are rescaled to sum
    to one, e.g. interview-only evidence yields the interview score itself.
    """
    present = {name: score for name, score in components.items() if score is not None and weights.get(name, 0) > 0}
    if not present:
        return None
    total_weight = sum(weights[name] for name in present)
    overall = sum(weights[name] * score for name, score in present.items()) / total_weight
    return round(min(max(overall, 0.0), 100.0), 2)


def _flags(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    seen: list[str] = []
    for item in raw:
        if isinstance(item, str) and item.strip() and item.strip() not in seen:
            seen.append(item.strip())
    return seen


class ScoringAggregator:
    def __init__(self, session: AsyncSession, llm: TextGenerator, *, max_tokens: int = 4096):
        self.session = session
        self.llm = llm
        self.max_tokens = max_tokens

    async def gather_evidence(self, candidate_id: str, assessment_id: str) -> Evidence:
        interview = (
            await self.session.execute(
                select(InterviewSession)
                .where(InterviewSession.candidate_id == candidate_id, InterviewSession.assessment_id == assessment_id)
                .order_by(InterviewSession.started_at.desc())
                .limit(1)
            )
        ).scalars().first()
        exercise = (
            await self.session.execute(
                select(PrExercise).where(PrExercise.candidate_id == candidate_id, PrExercise.assessment_id == assessment_id)
            )
        ).scalars().first()
        signals = (
            await self.session.execute(
                select(BehavioralSignal)
                .where(BehavioralSignal.candidate_id == candidate_id, BehavioralSignal.assessment_id == assessment_id)
                .order_by(BehavioralSignal.recorded_at.asc())
            )
        ).scalars().all()

        return Evidence(
            interview_conversation=list(interview.conversation or []) if interview else [],
            pr_issues=exercise.issues if exercise else [],
            pr_comments=exercise.comments if exercise else [],
            behavioral_signals=[
                {
                    "signal_type": signal.signal_type,
                    "data": signal.data,
                    "recorded_at": isoformat_z(signal.recorded_at),
                }
                for signal in signals
            ],
        )

    async def score(self, candidate_id: str, assessment_id: str) -> Score:
        assessment = await self.session.get(Assessment, assessment_id)
        if assessment is None:
            raise FatalError(f"Assessment {assessment_id} not found")

        evidence = await self.gather_evidence(candidate_id, assessment_id)
        prompt = build_scoring_prompt(
            role=assessment.role,
            rubric=assessment.rubric,
            interview_conversation=evidence.interview_conversation,
            pr_issues=evidence.pr_issues,
            pr_comments=evidence.pr_comments,
            behavioral_signals=evidence.behavioral_signals,
            weights=COMPONENT_WEIGHTS,
        )
        text = await self.llm.generate(prompt, max_tokens=self.max_tokens)
        reply = parse_json_response(text, "scoring")
        if not isinstance(reply, dict):
            raise UpstreamError("Failed to parse scoring JSON from Claude response", reason="bad_llm_json")

        available = evidence.available()
        components = {
            name: component_score(reply.get(key)) if available[name] else None
            for name, key in _SCORE_KEYS.items()
        }
        overall = composite_score(components)
        flags = _flags(reply.get("flags"))
        if overall is None and INSUFFICIENT_EVIDENCE_FLAG not in flags:
            flags.append(INSUFFICIENT_EVIDENCE_FLAG)

        breakdown = reply.get("breakdown")
        row = Score(
            candidate_id=candidate_id,
            assessment_id=assessment_id,
            overall_score=overall,
            breakdown=breakdown if isinstance(breakdown, dict) else {},
            reasoning=str(reply.get("reasoning") or ""),
            meta={
                **{_SCORE_KEYS[name]: value for name, value in components.items()},
                "weights": dict(COMPONENT_WEIGHTS),
                "flags": flags,
                "model_overall_score": component_score(reply.get("overall_score")),
            },
        )
        self.session.add(row)
        await self.session.flush()

        candidate = await self.session.get(Candidate, candidate_id)
        if candidate is not None:
            await advance_candidate(self.session, candidate, CandidateStatus.COMPLETED, reason="scored")

        logger.info(
            "candidate_scored",
            extra={"candidate_id": candidate_id, "assessment_id": assessment_id, "overall_score": overall},
        )
        return row


async def list_scores(session: AsyncSession, candidate_id: str) -> list[Score]:
    return list(
        (
            await session.execute(
                select(Score).where(Score.candidate_id == candidate_id).order_by(Score.scored_at.desc())
            )
        ).scalars().all()
    )
