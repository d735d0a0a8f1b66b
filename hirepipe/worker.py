"""Worker process: `python -m hirepipe.worker`."""

import asyncio
import logging
import signal

from redis.asyncio import Redis

from hirepipe.core.config import Settings, settings as default_settings
from hirepipe.core.logging_config import configure_logging
from hirepipe.db.session import build_engine, build_sessionmaker, create_schema
from hirepipe.jobs.dispatcher import JobDispatcher
from hirepipe.jobs.handlers import build_registry
from hirepipe.jobs.ledger import JobLedger
from hirepipe.jobs.queue import JobQueue
from hirepipe.jobs.scheduler import start_scheduler
from hirepipe.jobs.worker import JobWorker
from hirepipe.services.llm import AnthropicTextGenerator

logger = logging.getLogger("hirepipe.worker")


async def run(settings: Settings) -> None:
    engine = build_engine(settings)
    if settings.database_create_schema:
        await create_schema(engine)
    sessionmaker = build_sessionmaker(engine)
    redis = Redis.from_url(settings.redis_url, decode_responses=True)
    queue = JobQueue.from_settings(redis, settings)
    llm = AnthropicTextGenerator.from_settings(settings)

    ledger = JobLedger(sessionmaker)
    dispatcher = JobDispatcher(sessionmaker, ledger, build_registry(), llm, settings)
    worker = JobWorker(
        queue,
        dispatcher,
        ledger,
        concurrency=settings.worker_concurrency,
        poll_timeout_seconds=settings.worker_poll_timeout_seconds,
    )

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, worker.stop)

    scheduler = start_scheduler(queue, poll_seconds=settings.retry_poll_seconds)
    try:
        await worker.run()
    finally:
        scheduler.shutdown(wait=False)
        await llm.close()
        await redis.aclose()
        await engine.dispose()
        logger.info("worker_shutdown_complete")


def main() -> None:
    configure_logging(default_settings.log_level)
    asyncio.run(run(default_settings))


if __name__ == "__main__":
    main()
