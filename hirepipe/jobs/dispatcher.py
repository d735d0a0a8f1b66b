from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hirepipe.core.config import Settings
from hirepipe.core.state_machine import JOB_GRAPH, is_terminal
from hirepipe.jobs.ledger import JobLedger
from hirepipe.jobs.queue import QueuedJob
from hirepipe.jobs.registry import HandlerRegistry, HandlerResult, JobContext
from hirepipe.services.llm import TextGenerator

logger = logging.getLogger("hirepipe.jobs")


class JobDispatcher:
    """Runs one dequeued job through its handler and records the outcome."""

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        ledger: JobLedger,
        registry: HandlerRegistry,
        llm: TextGenerator,
        settings: Settings,
    ):
        self.sessionmaker = sessionmaker
        self.ledger = ledger
        self.registry = registry
        self.llm = llm
        self.settings = settings

    async def process(self, job: QueuedJob, *, final_attempt: bool = True) -> HandlerResult:
        """Execute `job`.

        A failure result is recorded and returned. A raised exception is
        recorded (as Failed on the final attempt, as the latest attempt error
        otherwise) and re-raised so the queue can retry or give up.
        """
        log_extra = {"job_id": job.job_id, "job_type": job.type, "attempt": job.attempt}
        if not await self.ledger.mark_running(job.job_id):
            # A redelivery of a job that already finished must not run again.
            current = await self.ledger.current_status(job.job_id)
            if current is not None and is_terminal(JOB_GRAPH, current):
                logger.info("job_already_finished", extra={**log_extra, "status": current.value})
                return HandlerResult.failed(
                    f"Job {job.job_id} is already {current.value}", error_code="already_finished"
                )

        handler = self.registry.resolve(job.type)
        if handler is None:
            result = HandlerResult.no_handler(job.type)
            await self.ledger.mark_failed(job.job_id, result.error or "")
            logger.warning("job_no_handler", extra=log_extra)
            return result

        async with self.sessionmaker() as session:
            ctx = JobContext(session=session, llm=self.llm, settings=self.settings)
            try:
                result = await handler(job.payload, ctx)
                if result.success:
                    await session.commit()
                else:
                    await session.rollback()
            except Exception as exc:
                await session.rollback()
                message = str(exc) or exc.__class__.__name__
                if final_attempt:
                    await self.ledger.mark_failed(job.job_id, message)
                else:
                    await self.ledger.record_attempt_error(job.job_id, message)
                logger.exception("job_handler_raised", extra={**log_extra, "error": message})
                raise

        if result.success:
            await self.ledger.mark_completed(job.job_id, result.data)
            logger.info("job_completed", extra=log_extra)
        else:
            await self.ledger.mark_failed(job.job_id, result.error or "Job failed")
            logger.warning("job_failed", extra={**log_extra, "error": result.error, "error_code": result.error_code})
        return result
