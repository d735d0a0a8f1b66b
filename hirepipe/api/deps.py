from typing import AsyncIterator

from fastapi import Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.core.config import Settings
from hirepipe.core.errors import UnauthorizedError
from hirepipe.db.session import session_scope
from hirepipe.jobs.queue import JobQueue
from hirepipe.models.candidate import Candidate
from hirepipe.services.assessments import find_candidate_by_token
from hirepipe.services.interview_engine import InterviewEngine
from hirepipe.services.llm import TextGenerator
from hirepipe.services.pr_review import PrReviewService


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    async for session in session_scope(request.app.state.sessionmaker):
        yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_queue(request: Request) -> JobQueue:
    return request.app.state.queue


def get_llm(request: Request) -> TextGenerator:
    return request.app.state.llm


async def get_current_candidate(
    session: AsyncSession = Depends(get_db_session),
    x_candidate_token: str | None = Header(default=None),
    token: str | None = Query(default=None),
) -> Candidate:
    raw = (x_candidate_token or token or "").strip()
    if not raw:
        raise UnauthorizedError("Missing candidate token")
    candidate = await find_candidate_by_token(session, raw)
    if candidate is None:
        raise UnauthorizedError("Invalid candidate token")
    return candidate


def get_interview_engine(
    session: AsyncSession = Depends(get_db_session),
    llm: TextGenerator = Depends(get_llm),
    settings: Settings = Depends(get_settings),
) -> InterviewEngine:
    return InterviewEngine(
        session,
        llm,
        total_questions=settings.interview_total_questions,
        max_tokens=settings.interview_max_tokens,
    )


def get_pr_review_service(
    session: AsyncSession = Depends(get_db_session),
    queue: JobQueue = Depends(get_queue),
) -> PrReviewService:
    return PrReviewService(session, queue)
