"""Adaptive interview: one LLM-generated question per turn, fixed question budget."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from hirepipe.core.datetime_utils import isoformat_z, utcnow
from hirepipe.core.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from hirepipe.core.state_machine import (
    ACTIVE_INTERVIEW_STATUSES,
    INTERVIEW_GRAPH,
    CandidateStatus,
    InterviewStatus,
    ensure_transition,
)
from hirepipe.models.assessment import Assessment
from hirepipe.models.candidate import Candidate
from hirepipe.models.interview_session import InterviewSession, active_slot_for
from hirepipe.schemas.interview import InterviewStarted, InterviewStatusOut, InterviewTurn
from hirepipe.services.candidate_status import advance_candidate
from hirepipe.services.events import log_event
from hirepipe.services.llm import TextGenerator
from hirepipe.services.prompts.interview import build_first_question_prompt, build_follow_up_prompt

logger = logging.getLogger("hirepipe.interview")

COMPLETION_MESSAGE = "Interview complete. Thank you for your responses."


def _message(role: str, content: str, question_number: int | None = None) -> dict[str, Any]:
    message: dict[str, Any] = {"role": role, "content": content, "timestamp": isoformat_z(utcnow())}
    if question_number is not None:
        message["question_number"] = question_number
    return message


class InterviewEngine:
    def __init__(
        self,
        session: AsyncSession,
        llm: TextGenerator,
        *,
        total_questions: int = 8,
        max_tokens: int = 1024,
    ):
        self.session = session
        self.llm = llm
        self.total_questions = total_questions
        self.max_tokens = max_tokens

    async def _latest_session(self, candidate: Candidate, *statuses: InterviewStatus) -> InterviewSession | None:
        stmt = select(InterviewSession).where(
            InterviewSession.candidate_id == candidate.id,
            InterviewSession.assessment_id == candidate.assessment_id,
        )
        if statuses:
            stmt = stmt.where(InterviewSession.status.in_(statuses))
        stmt = stmt.order_by(InterviewSession.started_at.desc()).limit(1)
        return (await self.session.execute(stmt)).scalars().first()

    async def _ask(self, prompt: str) -> str:
        question = (await self.llm.generate(prompt, max_tokens=self.max_tokens)).strip()
        if not question:
            raise UpstreamError("Failed to generate interview question", reason="no_text_response")
        return question

    async def start(self, candidate: Candidate) -> InterviewStarted:
        existing = await self._latest_session(candidate, *ACTIVE_INTERVIEW_STATUSES)
        if existing is not None:
            raise ConflictError("Interview session already exists", reason="interview_exists")

        assessment = await self.session.get(Assessment, candidate.assessment_id)
        if assessment is None:
            raise NotFoundError("Assessment not found")

        tech_stack = assessment.tech_stack
        question = await self._ask(
            build_first_question_prompt(
                role=assessment.role,
                tech_stack=tech_stack,
                rubric=assessment.rubric,
                total_questions=self.total_questions,
            )
        )

        interview = InterviewSession(
            candidate_id=candidate.id,
            assessment_id=candidate.assessment_id,
            status=InterviewStatus.IN_PROGRESS,
            conversation=[_message("interviewer", question, 1)],
            context={
                "tech_stack": tech_stack,
                "rubric": assessment.rubric,
                "role": assessment.role,
                "total_questions": self.total_questions,
                "current_question": 1,
            },
            active_slot=active_slot_for(candidate.id, candidate.assessment_id),
            started_at=utcnow(),
        )
        self.session.add(interview)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # A concurrent start won the unique active slot.
            await self.session.rollback()
            raise ConflictError("Interview session already exists", reason="interview_exists") from exc

        await log_event(
            self.session,
            candidate_id=candidate.id,
            action_type="interview_started",
            related_entity_type="interview_session",
            related_entity_id=interview.id,
            to_status=InterviewStatus.IN_PROGRESS,
        )
        await advance_candidate(self.session, candidate, CandidateStatus.INTERVIEWING, reason="interview_started")
        await self.session.commit()

        logger.info("interview_started", extra={"candidate_id": candidate.id, "session_id": interview.id})
        return InterviewStarted(
            session_id=interview.id,
            status=interview.status,
            question=question,
            question_number=1,
            total_questions=self.total_questions,
            started_at=interview.started_at,
        )

    async def submit_answer(self, candidate: Candidate, answer: Any) -> InterviewTurn:
        if not isinstance(answer, str) or not answer.strip():
            raise ValidationError("Answer is required")

        interview = await self._latest_session(candidate, InterviewStatus.IN_PROGRESS)
        if interview is None:
            raise NotFoundError("No active interview session found")

        context = dict(interview.context or {})
        total = int(context.get("total_questions") or self.total_questions)
        current = int(context.get("current_question") or 0)
        next_number = current + 1
        conversation = list(interview.conversation or [])
        conversation.append(_message("candidate", answer.strip()))

        if next_number > total:
            ensure_transition(INTERVIEW_GRAPH, interview.status, InterviewStatus.COMPLETED, entity="interview")
            interview.conversation = conversation
            interview.status = InterviewStatus.COMPLETED
            interview.active_slot = None
            interview.completed_at = utcnow()
            await log_event(
                self.session,
                candidate_id=candidate.id,
                action_type="interview_completed",
                related_entity_type="interview_session",
                related_entity_id=interview.id,
                from_status=InterviewStatus.IN_PROGRESS,
                to_status=InterviewStatus.COMPLETED,
                meta={"answered": current},
            )
            await advance_candidate(
                self.session, candidate, CandidateStatus.INTERVIEW_COMPLETE, reason="interview_completed"
            )
            await self._commit(interview.id)
            logger.info("interview_completed", extra={"candidate_id": candidate.id, "session_id": interview.id})
            return InterviewTurn(
                session_id=interview.id,
                status=InterviewStatus.COMPLETED,
                question_number=current,
                total_questions=total,
                message=COMPLETION_MESSAGE,
            )

        question = await self._ask(
            build_follow_up_prompt(
                role=context.get("role") or "",
                tech_stack=context.get("tech_stack") or [],
                rubric=context.get("rubric"),
                question_number=next_number,
                total_questions=total,
                conversation=conversation,
            )
        )
        conversation.append(_message("interviewer", question, next_number))
        context["current_question"] = next_number
        # JSON columns only persist on reassignment.
        interview.conversation = conversation
        interview.context = context
        await self._commit(interview.id)

        return InterviewTurn(
            session_id=interview.id,
            status=InterviewStatus.IN_PROGRESS,
            question=question,
            question_number=next_number,
            total_questions=total,
        )

    async def _commit(self, session_id: str) -> None:
        # Takes the id, not the row: the rollback below expires every loaded object.
        try:
            await self.session.commit()
        except StaleDataError as exc:
            await self.session.rollback()
            logger.warning("interview_turn_stale", extra={"session_id": session_id})
            raise ConflictError(
                "Interview session was updated by another request; reload and retry",
                reason="stale_session",
            ) from exc

    async def status(self, candidate: Candidate) -> InterviewStatusOut:
        interview = await self._latest_session(candidate)
        if interview is None:
            return InterviewStatusOut(
                has_session=False,
                status="not_started",
                total_questions=self.total_questions,
            )

        conversation = interview.conversation or []
        pending_question = None
        if interview.status == InterviewStatus.IN_PROGRESS:
            for message in reversed(conversation):
                if message.get("role") == "interviewer":
                    pending_question = message.get("content")
                    break

        return InterviewStatusOut(
            has_session=True,
            session_id=interview.id,
            status=InterviewStatus(interview.status).value,
            question_number=interview.current_question,
            total_questions=interview.total_questions or self.total_questions,
            current_question=pending_question,
            answered_count=sum(1 for message in conversation if message.get("role") == "candidate"),
            started_at=interview.started_at,
            completed_at=interview.completed_at,
        )
