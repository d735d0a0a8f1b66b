from __future__ import annotations

import logging
import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.core.errors import NotFoundError, ValidationError
from hirepipe.core.state_machine import AssessmentStatus, CandidateStatus, JobStatus
from hirepipe.db.base import new_id
from hirepipe.jobs.handlers import RUBRIC_GENERATE, SCORING_GENERATE
from hirepipe.models.assessment import Assessment
from hirepipe.models.candidate import Candidate
from hirepipe.models.job import Job
from hirepipe.schemas.assessment import AssessmentCreate, CandidateInvite
from hirepipe.services.events import log_event
from hirepipe.services.job_submission import JobEnqueuer, submit_job

logger = logging.getLogger("hirepipe.assessments")


def new_access_token() -> str:
    return secrets.token_hex(32)


async def create_assessment(
    session: AsyncSession,
    queue: JobEnqueuer,
    data: AssessmentCreate,
) -> tuple[Assessment, Job | None]:
    assessment = Assessment(
        id=new_id(),
        title=data.title.strip(),
        role=data.role.strip(),
        description=data.description,
        rubric=data.rubric or [],
        config={"tech_stack": [item.strip() for item in data.tech_stack if item.strip()]},
        status=data.status,
        created_by=data.created_by,
    )
    job = None
    if data.generate_rubric:
        # Inserted with its job so a failed enqueue removes both.
        job = await submit_job(
            session,
            queue,
            job_type=RUBRIC_GENERATE,
            payload={"assessmentId": assessment.id},
            companions=[assessment],
        )
    else:
        session.add(assessment)
        await session.commit()
    logger.info("assessment_created", extra={"assessment_id": assessment.id, "rubric_job_id": job.id if job else None})
    return assessment, job


async def list_assessments(session: AsyncSession, status: AssessmentStatus | None = None) -> list[Assessment]:
    stmt = select(Assessment).order_by(Assessment.created_at.desc())
    if status is not None:
        stmt = stmt.where(Assessment.status == status)
    return list((await session.execute(stmt)).scalars().all())


async def get_assessment(session: AsyncSession, assessment_id: str) -> Assessment:
    assessment = await session.get(Assessment, assessment_id)
    if assessment is None:
        raise NotFoundError("Assessment not found")
    return assessment


async def invite_candidate(session: AsyncSession, assessment_id: str, data: CandidateInvite) -> Candidate:
    assessment = await get_assessment(session, assessment_id)
    if assessment.status == AssessmentStatus.ARCHIVED:
        raise ValidationError("Cannot invite candidates to an archived assessment", reason="assessment_archived")

    candidate = Candidate(
        assessment_id=assessment.id,
        name=data.name.strip(),
        email=data.email.strip().lower(),
        access_token=new_access_token(),
        meta=data.metadata,
        status=CandidateStatus.INVITED,
    )
    session.add(candidate)
    await session.flush()
    await log_event(
        session,
        candidate_id=candidate.id,
        action_type="candidate_invited",
        related_entity_type="assessment",
        related_entity_id=assessment.id,
        to_status=CandidateStatus.INVITED,
    )
    await session.commit()
    logger.info("candidate_invited", extra={"candidate_id": candidate.id, "assessment_id": assessment.id})
    return candidate


async def find_candidate_by_token(session: AsyncSession, token: str) -> Candidate | None:
    return (
        await session.execute(select(Candidate).where(Candidate.access_token == token))
    ).scalars().first()


async def get_candidate(session: AsyncSession, candidate_id: str) -> Candidate:
    candidate = await session.get(Candidate, candidate_id)
    if candidate is None:
        raise NotFoundError("Candidate not found")
    return candidate


async def request_scoring(session: AsyncSession, queue: JobEnqueuer, assessment_id: str, candidate_id: str) -> Job:
    candidate = await get_candidate(session, candidate_id)
    if candidate.assessment_id != assessment_id:
        raise NotFoundError("Candidate not found for this assessment")
    return await submit_job(
        session,
        queue,
        job_type=SCORING_GENERATE,
        payload={"candidateId": candidate.id, "assessmentId": assessment_id},
    )


async def list_jobs(session: AsyncSession, status: JobStatus | None = None, *, limit: int = 100) -> list[Job]:
    stmt = select(Job).order_by(Job.created_at.desc()).limit(limit)
    if status is not None:
        stmt = stmt.where(Job.status == status)
    return list((await session.execute(stmt)).scalars().all())


async def get_job(session: AsyncSession, job_id: str) -> Job:
    job = await session.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    return job
