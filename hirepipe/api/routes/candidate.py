from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.api import deps
from hirepipe.core.config import Settings
from hirepipe.models.candidate import Candidate
from hirepipe.schemas.assessment import CandidateSessionOut
from hirepipe.schemas.behavioral import SignalBatchIn, SignalBatchRecorded, SignalIn, SignalRecorded
from hirepipe.schemas.interview import InterviewAnswerIn, InterviewStarted, InterviewStatusOut, InterviewTurn
from hirepipe.schemas.pr_review import (
    PrCommentAdded,
    PrCommentIn,
    PrReviewStarted,
    PrReviewSubmitted,
    PrReviewView,
)
from hirepipe.services import behavioral
from hirepipe.services.assessments import get_assessment
from hirepipe.services.interview_engine import InterviewEngine
from hirepipe.services.pr_review import PrReviewService

router = APIRouter(prefix="/api/candidate", tags=["candidate"])


@router.get("/session", response_model=CandidateSessionOut)
async def candidate_session(
    candidate: Candidate = Depends(deps.get_current_candidate),
    session: AsyncSession = Depends(deps.get_db_session),
):
    assessment = await get_assessment(session, candidate.assessment_id)
    return CandidateSessionOut(
        candidate_id=candidate.id,
        name=candidate.name,
        email=candidate.email,
        status=candidate.status,
        assessment_id=assessment.id,
        assessment_title=assessment.title,
        assessment_role=assessment.role,
        assessment_description=assessment.description,
    )


@router.post("/interview/start", response_model=InterviewStarted, status_code=status.HTTP_201_CREATED)
async def start_interview(
    candidate: Candidate = Depends(deps.get_current_candidate),
    engine: InterviewEngine = Depends(deps.get_interview_engine),
):
    return await engine.start(candidate)


@router.post("/interview/answer", response_model=InterviewTurn)
async def answer_interview(
    payload: InterviewAnswerIn,
    candidate: Candidate = Depends(deps.get_current_candidate),
    engine: InterviewEngine = Depends(deps.get_interview_engine),
):
    return await engine.submit_answer(candidate, payload.answer)


@router.get("/interview/status", response_model=InterviewStatusOut)
async def interview_status(
    candidate: Candidate = Depends(deps.get_current_candidate),
    engine: InterviewEngine = Depends(deps.get_interview_engine),
):
    return await engine.status(candidate)


@router.post("/pr-review/start", response_model=PrReviewStarted)
async def start_pr_review(
    response: Response,
    candidate: Candidate = Depends(deps.get_current_candidate),
    service: PrReviewService = Depends(deps.get_pr_review_service),
):
    result = await service.start(candidate)
    if result.created:
        response.status_code = status.HTTP_201_CREATED
    return result


@router.get("/pr-review", response_model=PrReviewView)
async def view_pr_review(
    candidate: Candidate = Depends(deps.get_current_candidate),
    service: PrReviewService = Depends(deps.get_pr_review_service),
):
    return await service.view(candidate)


@router.post("/pr-review/comment", response_model=PrCommentAdded, status_code=status.HTTP_201_CREATED)
async def add_pr_comment(
    payload: PrCommentIn,
    candidate: Candidate = Depends(deps.get_current_candidate),
    service: PrReviewService = Depends(deps.get_pr_review_service),
):
    return await service.add_comment(candidate, payload.file, payload.line, payload.comment)


@router.post("/pr-review/submit", response_model=PrReviewSubmitted)
async def submit_pr_review(
    candidate: Candidate = Depends(deps.get_current_candidate),
    service: PrReviewService = Depends(deps.get_pr_review_service),
):
    return await service.submit(candidate)


@router.post("/behavioral", response_model=SignalRecorded, status_code=status.HTTP_201_CREATED)
async def record_behavioral_signal(
    payload: SignalIn,
    candidate: Candidate = Depends(deps.get_current_candidate),
    session: AsyncSession = Depends(deps.get_db_session),
):
    return await behavioral.record_signal(session, candidate, payload.signal_type, payload.data, payload.session_id)


@router.post("/behavioral/batch", response_model=SignalBatchRecorded, status_code=status.HTTP_201_CREATED)
async def record_behavioral_batch(
    payload: SignalBatchIn,
    candidate: Candidate = Depends(deps.get_current_candidate),
    session: AsyncSession = Depends(deps.get_db_session),
    settings: Settings = Depends(deps.get_settings),
):
    return await behavioral.record_signals(
        session, candidate, payload.signals, limit=settings.behavioral_batch_limit
    )
