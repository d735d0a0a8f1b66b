from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.api import deps
from hirepipe.core.state_machine import JobStatus
from hirepipe.jobs.queue import JobQueue
from hirepipe.schemas.job import JobCreate, JobOut
from hirepipe.services.assessments import get_job, list_jobs
from hirepipe.services.job_submission import submit_job

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.post("", response_model=JobOut, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreate,
    session: AsyncSession = Depends(deps.get_db_session),
    queue: JobQueue = Depends(deps.get_queue),
):
    job_type = payload.type if isinstance(payload.type, str) else ""
    return await submit_job(session, queue, job_type=job_type, payload=payload.payload)


@router.get("", response_model=list[JobOut])
async def list_all_jobs(
    status_filter: JobStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=500),
    session: AsyncSession = Depends(deps.get_db_session),
):
    return await list_jobs(session, status_filter, limit=limit)


@router.get("/{job_id}", response_model=JobOut)
async def get_job_by_id(job_id: str, session: AsyncSession = Depends(deps.get_db_session)):
    return await get_job(session, job_id)
