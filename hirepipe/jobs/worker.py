from __future__ import annotations

import asyncio
import logging

from redis.exceptions import RedisError

from hirepipe.jobs.dispatcher import JobDispatcher
from hirepipe.jobs.ledger import JobLedger
from hirepipe.jobs.queue import JobQueue, QueuedJob

logger = logging.getLogger("hirepipe.jobs.worker")

IDLE_BACKOFF_SECONDS = 1.0


class JobWorker:
    """Pool of consumer tasks pulling from one queue.

    Up to `concurrency` jobs run at once on the event loop, so jobs can finish
    out of submission order. `stop()` lets in-flight jobs finish.
    """

    def __init__(
        self,
        queue: JobQueue,
        dispatcher: JobDispatcher,
        ledger: JobLedger,
        *,
        concurrency: int = 5,
        poll_timeout_seconds: int = 5,
    ):
        self.queue = queue
        self.dispatcher = dispatcher
        self.ledger = ledger
        self.concurrency = max(int(concurrency), 1)
        self.poll_timeout_seconds = poll_timeout_seconds
        self._stopping = asyncio.Event()

    def stop(self) -> None:
        self._stopping.set()

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    async def run(self) -> None:
        logger.info("worker_started", extra={"queue": self.queue.name, "concurrency": self.concurrency})
        consumers = [asyncio.create_task(self._consume(index)) for index in range(self.concurrency)]
        try:
            await asyncio.gather(*consumers)
        finally:
            logger.info("worker_stopped", extra={"queue": self.queue.name})

    async def _consume(self, index: int) -> None:
        while not self.stopping:
            try:
                job = await self.queue.dequeue(timeout=self.poll_timeout_seconds)
            except RedisError:
                logger.exception("worker_dequeue_failed", extra={"consumer": index})
                await asyncio.sleep(IDLE_BACKOFF_SECONDS)
                continue
            if job is None:
                continue
            await self.handle(job)

    async def handle(self, job: QueuedJob) -> None:
        final_attempt = job.attempt >= self.queue.max_attempts
        try:
            await self.dispatcher.process(job, final_attempt=final_attempt)
            return
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__

        if not final_attempt:
            try:
                if await self.queue.schedule_retry(job):
                    return
            except RedisError:
                logger.exception("job_retry_schedule_failed", extra={"job_id": job.job_id})

        # The handler's own message wins if the ledger already shows Failed.
        await self.ledger.mark_failed(job.job_id, f"Job crashed: {error}", observed=True)
