from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from redis.exceptions import RedisError

from hirepipe.jobs.queue import JobQueue

logger = logging.getLogger("hirepipe.jobs.scheduler")


async def promote_due_retries(queue: JobQueue) -> int:
    try:
        promoted = await queue.promote_due()
    except RedisError:
        logger.exception("retry_promotion_failed", extra={"queue": queue.name})
        return 0
    if promoted:
        logger.info("retries_promoted", extra={"queue": queue.name, "count": promoted})
    return promoted


def start_scheduler(queue: JobQueue, *, poll_seconds: int) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        promote_due_retries,
        IntervalTrigger(seconds=poll_seconds),
        args=[queue],
        id="promote_due_retries",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    return scheduler
