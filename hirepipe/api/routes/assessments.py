from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.api import deps
from hirepipe.core.state_machine import AssessmentStatus
from hirepipe.jobs.queue import JobQueue
from hirepipe.schemas.assessment import (
    AssessmentCreate,
    AssessmentCreated,
    AssessmentOut,
    CandidateInvite,
    CandidateInvited,
)
from hirepipe.schemas.score import ScoreOut, ScoreRequested
from hirepipe.services import assessments
from hirepipe.services.scoring import list_scores

router = APIRouter(prefix="/api", tags=["assessments"])


@router.post("/assessments", response_model=AssessmentCreated, status_code=status.HTTP_201_CREATED)
async def create_assessment(
    payload: AssessmentCreate,
    session: AsyncSession = Depends(deps.get_db_session),
    queue: JobQueue = Depends(deps.get_queue),
):
    assessment, job = await assessments.create_assessment(session, queue, payload)
    out = AssessmentCreated.model_validate(assessment)
    out.rubric_job_id = job.id if job else None
    return out


@router.get("/assessments", response_model=list[AssessmentOut])
async def list_assessments(
    status_filter: AssessmentStatus | None = Query(default=None, alias="status"),
    session: AsyncSession = Depends(deps.get_db_session),
):
    return await assessments.list_assessments(session, status_filter)


@router.get("/assessments/{assessment_id}", response_model=AssessmentOut)
async def get_assessment(assessment_id: str, session: AsyncSession = Depends(deps.get_db_session)):
    return await assessments.get_assessment(session, assessment_id)


@router.post(
    "/assessments/{assessment_id}/invite",
    response_model=CandidateInvited,
    status_code=status.HTTP_201_CREATED,
)
async def invite_candidate(
    assessment_id: str,
    payload: CandidateInvite,
    session: AsyncSession = Depends(deps.get_db_session),
):
    return await assessments.invite_candidate(session, assessment_id, payload)


@router.post(
    "/assessments/{assessment_id}/candidates/{candidate_id}/score",
    response_model=ScoreRequested,
    status_code=status.HTTP_202_ACCEPTED,
)
async def request_score(
    assessment_id: str,
    candidate_id: str,
    session: AsyncSession = Depends(deps.get_db_session),
    queue: JobQueue = Depends(deps.get_queue),
):
    job = await assessments.request_scoring(session, queue, assessment_id, candidate_id)
    return ScoreRequested(job_id=job.id, candidate_id=candidate_id, assessment_id=assessment_id)


@router.get("/candidates/{candidate_id}/scores", response_model=list[ScoreOut])
async def get_candidate_scores(candidate_id: str, session: AsyncSession = Depends(deps.get_db_session)):
    await assessments.get_candidate(session, candidate_id)
    return await list_scores(session, candidate_id)
