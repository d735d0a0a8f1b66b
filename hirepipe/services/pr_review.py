from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.core.datetime_utils import isoformat_z, utcnow
from hirepipe.core.errors import ConflictError, NotFoundError, ValidationError
from hirepipe.core.state_machine import PR_EXERCISE_GRAPH, CandidateStatus, PrExerciseStatus, ensure_transition
from hirepipe.db.base import new_id
from hirepipe.jobs.handlers import PR_GENERATE
from hirepipe.models.candidate import Candidate
from hirepipe.models.pr_exercise import PrExercise
from hirepipe.schemas.pr_review import (
    PrArtifactOut,
    PrCommentAdded,
    PrFileOut,
    PrReviewStarted,
    PrReviewSubmitted,
    PrReviewView,
    PrSubmissionOut,
)
from hirepipe.services.candidate_status import advance_candidate
from hirepipe.services.events import log_event
from hirepipe.services.job_submission import JobEnqueuer, submit_job

logger = logging.getLogger("hirepipe.pr_review")


def candidate_view_of(generated_data: dict[str, Any] | None) -> PrArtifactOut:
    data = generated_data or {}
    files = [
        PrFileOut(
            path=str(item.get("path") or ""),
            language=item.get("language"),
            content=str(item.get("content") or ""),
            diff=str(item.get("diff") or ""),
        )
        for item in data.get("files") or []
        if isinstance(item, dict)
    ]
    return PrArtifactOut(
        title=str(data.get("title") or ""),
        description=str(data.get("description") or ""),
        files=files,
    )


def _validate_comment(file: Any, line: Any, comment: Any) -> tuple[str, int, str]:
    if not isinstance(file, str) or not file.strip():
        raise ValidationError("Field 'file' is required and must be a string")
    if isinstance(line, bool) or not isinstance(line, int) or line < 1:
        raise ValidationError("Field 'line' is required and must be a number")
    if not isinstance(comment, str) or not comment.strip():
        raise ValidationError("Field 'comment' is required and must be a string")
    return file, line, comment


class PrReviewService:
    def __init__(self, session: AsyncSession, queue: JobEnqueuer):
        self.session = session
        self.queue = queue

    async def _find(self, candidate_id: str, assessment_id: str) -> PrExercise | None:
        return (
            await self.session.execute(
                select(PrExercise).where(
                    PrExercise.candidate_id == candidate_id,
                    PrExercise.assessment_id == assessment_id,
                )
            )
        ).scalars().first()

    async def _exercise(self, candidate: Candidate) -> PrExercise | None:
        return await self._find(candidate.id, candidate.assessment_id)

    async def _require_ready(self, candidate: Candidate, *, action: str) -> PrExercise:
        exercise = await self._exercise(candidate)
        if exercise is None:
            raise NotFoundError("No PR exercise found")
        if exercise.status == PrExerciseStatus.SUBMITTED:
            raise ConflictError(
                "PR review already submitted",
                reason="already_submitted",
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        if exercise.status != PrExerciseStatus.READY:
            raise ConflictError(
                f"PR exercise is not ready for {action}",
                reason="not_ready",
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        return exercise

    async def start(self, candidate: Candidate) -> PrReviewStarted:
        candidate_id, assessment_id = candidate.id, candidate.assessment_id
        existing = await self._find(candidate_id, assessment_id)
        if existing is not None:
            return PrReviewStarted(exercise_id=existing.id, status=existing.status, created=False)

        exercise = PrExercise(
            id=new_id(),
            candidate_id=candidate_id,
            assessment_id=assessment_id,
            status=PrExerciseStatus.GENERATING,
            submission={"comments": []},
            started_at=utcnow(),
        )
        payload = {
            "assessmentId": assessment_id,
            "candidateId": candidate_id,
            "exerciseId": exercise.id,
        }
        try:
            job = await submit_job(
                self.session,
                self.queue,
                job_type=PR_GENERATE,
                payload=payload,
                companions=[exercise],
            )
        except IntegrityError:
            # Lost a concurrent start; the other request's exercise stands.
            # The rollback expires `candidate`: look up by the captured ids.
            await self.session.rollback()
            existing = await self._find(candidate_id, assessment_id)
            if existing is None:
                raise
            return PrReviewStarted(exercise_id=existing.id, status=existing.status, created=False)

        await log_event(
            self.session,
            candidate_id=candidate.id,
            action_type="pr_review_started",
            related_entity_type="pr_exercise",
            related_entity_id=exercise.id,
            to_status=PrExerciseStatus.GENERATING,
            meta={"job_id": job.id},
        )
        await advance_candidate(self.session, candidate, CandidateStatus.PR_REVIEW, reason="pr_review_started")
        await self.session.commit()

        logger.info("pr_review_started", extra={"candidate_id": candidate.id, "exercise_id": exercise.id, "job_id": job.id})
        return PrReviewStarted(exercise_id=exercise.id, status=exercise.status, created=True, job_id=job.id)

    async def view(self, candidate: Candidate) -> PrReviewView:
        exercise = await self._exercise(candidate)
        if exercise is None:
            raise NotFoundError("No PR exercise found. Start one first.")
        visible = exercise.status in (PrExerciseStatus.READY, PrExerciseStatus.SUBMITTED)
        return PrReviewView(
            exercise_id=exercise.id,
            status=exercise.status,
            pr=candidate_view_of(exercise.generated_data) if visible else None,
            submission=PrSubmissionOut(comments=exercise.comments),
            started_at=exercise.started_at,
            submitted_at=exercise.submitted_at,
        )

    async def add_comment(self, candidate: Candidate, file: Any, line: Any, comment: Any) -> PrCommentAdded:
        file, line, comment = _validate_comment(file, line, comment)
        exercise = await self._require_ready(candidate, action="review")

        entry = {
            "id": str(uuid.uuid4()),
            "file": file,
            "line": line,
            "comment": comment,
            "createdAt": isoformat_z(utcnow()),
        }
        comments = exercise.comments + [entry]
        exercise.submission = {**(exercise.submission or {}), "comments": comments}
        await self.session.commit()
        return PrCommentAdded(comment_id=entry["id"], total_comments=len(comments))

    async def submit(self, candidate: Candidate) -> PrReviewSubmitted:
        exercise = await self._require_ready(candidate, action="submission")
        comments = exercise.comments
        if not comments:
            raise ValidationError("Cannot submit review with no comments", reason="no_comments")

        ensure_transition(PR_EXERCISE_GRAPH, exercise.status, PrExerciseStatus.SUBMITTED, entity="pr_exercise")
        exercise.status = PrExerciseStatus.SUBMITTED
        exercise.submitted_at = utcnow()
        await log_event(
            self.session,
            candidate_id=candidate.id,
            action_type="pr_review_submitted",
            related_entity_type="pr_exercise",
            related_entity_id=exercise.id,
            from_status=PrExerciseStatus.READY,
            to_status=PrExerciseStatus.SUBMITTED,
            meta={"comments": len(comments)},
        )
        await advance_candidate(
            self.session, candidate, CandidateStatus.PR_REVIEW_COMPLETE, reason="pr_review_submitted"
        )
        await self.session.commit()

        logger.info("pr_review_submitted", extra={"candidate_id": candidate.id, "exercise_id": exercise.id})
        return PrReviewSubmitted(
            exercise_id=exercise.id,
            status=exercise.status,
            total_comments=len(comments),
            submitted_at=exercise.submitted_at,
        )
