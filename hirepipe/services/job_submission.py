from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from hirepipe.core.errors import ValidationError
from hirepipe.core.state_machine import JobStatus
from hirepipe.jobs.queue import QueuedJob
from hirepipe.models.job import Job

logger = logging.getLogger("hirepipe.jobs.submission")


class JobEnqueuer(Protocol):
    async def enqueue(self, job: QueuedJob) -> bool: ...


async def submit_job(
    session: AsyncSession,
    queue: JobEnqueuer,
    *,
    job_type: str,
    payload: dict[str, Any],
    companions: Sequence[Any] = (),
) -> Job:
    """Persist a Pending job (plus companion rows) and hand it to the queue.

    If the queue rejects the hand-off, the job row and companions are deleted
    again so nothing is left behind for a job that will never run.
    """
    job_type = (job_type or "").strip()
    if not job_type:
        raise ValidationError("Field 'type' is required and must be a non-empty string")
    if not isinstance(payload, dict):
        raise ValidationError("Field 'payload' must be an object")

    job = Job(type=job_type, status=JobStatus.PENDING, payload=payload, attempts=0)
    for row in companions:
        session.add(row)
    session.add(job)
    await session.commit()

    try:
        await queue.enqueue(QueuedJob(job_id=job.id, type=job.type, payload=payload))
    except Exception:
        logger.exception("job_enqueue_failed", extra={"job_id": job.id, "job_type": job_type})
        await session.delete(job)
        for row in companions:
            await session.delete(row)
        await session.commit()
        raise

    logger.info("job_submitted", extra={"job_id": job.id, "job_type": job_type})
    return job
