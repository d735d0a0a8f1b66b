from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hirepipe.core.datetime_utils import utcnow
from hirepipe.core.state_machine import JOB_GRAPH, JobStatus, is_terminal, sources_of
from hirepipe.models.job import Job

logger = logging.getLogger("hirepipe.jobs.ledger")

MAX_ERROR_LENGTH = 2000

# Running -> Running is a redelivered retry, not a graph edge.
_RUNNING_SOURCES = sources_of(JOB_GRAPH, JobStatus.RUNNING) | {JobStatus.RUNNING}
_COMPLETED_SOURCES = sources_of(JOB_GRAPH, JobStatus.COMPLETED)
_FAILED_SOURCES = sources_of(JOB_GRAPH, JobStatus.FAILED)


def _clip(error: str) -> str:
    return (error or "")[:MAX_ERROR_LENGTH]


class JobLedger:
    """Durable job status record.

    Every write is a single conditional UPDATE guarded by the legal source
    states, run in its own transaction, so a terminal status is never
    regressed and concurrent writers cannot interleave a read-modify-write.
    Store failures are logged and reported as ``False``.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self.sessionmaker = sessionmaker

    async def get(self, job_id: str) -> Job | None:
        async with self.sessionmaker() as session:
            return await session.get(Job, job_id)

    async def mark_running(self, job_id: str) -> bool:
        now = utcnow()
        return await self._transition(
            job_id,
            _RUNNING_SOURCES,
            status=JobStatus.RUNNING,
            attempts=Job.attempts + 1,
            started_at=func.coalesce(Job.started_at, now),
            updated_at=now,
        )

    async def mark_completed(self, job_id: str, result: dict[str, Any] | None = None) -> bool:
        now = utcnow()
        return await self._transition(
            job_id,
            _COMPLETED_SOURCES,
            status=JobStatus.COMPLETED,
            result=result,
            error=None,
            completed_at=now,
            updated_at=now,
        )

    async def mark_failed(self, job_id: str, error: str, *, observed: bool = False) -> bool:
        if observed:
            # Failure observed from outside the handler: keep whatever the
            # handler already recorded.
            current = await self.current_status(job_id)
            if current is None or is_terminal(JOB_GRAPH, current):
                logger.info(
                    "job_failure_observation_skipped",
                    extra={"job_id": job_id, "status": current.value if current else None},
                )
                return False
        now = utcnow()
        return await self._transition(
            job_id,
            _FAILED_SOURCES,
            status=JobStatus.FAILED,
            error=_clip(error),
            completed_at=now,
            updated_at=now,
        )

    async def record_attempt_error(self, job_id: str, error: str) -> bool:
        """Keep the latest error on a Running job that will be retried."""
        return await self._transition(
            job_id,
            frozenset({JobStatus.RUNNING}),
            error=_clip(error),
            updated_at=utcnow(),
        )

    async def current_status(self, job_id: str) -> JobStatus | None:
        try:
            async with self.sessionmaker() as session:
                value = (await session.execute(select(Job.status).where(Job.id == job_id))).scalar_one_or_none()
        except SQLAlchemyError:
            logger.exception("job_ledger_read_failed", extra={"job_id": job_id})
            return None
        return JobStatus(value) if value is not None else None

    async def _transition(self, job_id: str, sources: frozenset[JobStatus], **values: Any) -> bool:
        stmt = (
            update(Job)
            .where(Job.id == job_id, Job.status.in_(list(sources)))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.sessionmaker() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError:
            logger.exception(
                "job_ledger_write_failed",
                extra={"job_id": job_id, "to_status": getattr(values.get("status"), "value", None)},
            )
            return False

        if result.rowcount == 0:
            logger.warning(
                "job_ledger_write_ignored",
                extra={"job_id": job_id, "to_status": getattr(values.get("status"), "value", None)},
            )
            return False
        return True
