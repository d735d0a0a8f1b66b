from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, replace
from typing import Any

from redis.asyncio import Redis

from hirepipe.core.config import Settings

logger = logging.getLogger("hirepipe.jobs.queue")


def retry_delay_seconds(attempt_number: int, base_seconds: int, max_seconds: int) -> int:
    # attempt_number starts at 1 (first failed execution).
    attempt = max(int(attempt_number), 1)
    delay = base_seconds * (2 ** (attempt - 1))
    return min(delay, max_seconds)


@dataclass(frozen=True)
class QueuedJob:
    job_id: str
    type: str
    payload: dict[str, Any]
    attempt: int = 1

    def to_json(self) -> str:
        return json.dumps(
            {"jobId": self.job_id, "type": self.type, "payload": self.payload, "attempt": self.attempt},
            ensure_ascii=False,
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "QueuedJob":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("Queue item must be an object")
        payload = data.get("payload") or {}
        if not isinstance(payload, dict):
            raise ValueError("Queue item payload must be an object")
        return cls(
            job_id=str(data.get("jobId") or ""),
            # Older producers only set a `name`.
            type=str(data.get("type") or data.get("name") or ""),
            payload=payload,
            attempt=max(int(data.get("attempt") or 1), 1),
        )


class JobQueue:
    """At-least-once job queue on Redis.

    Ready items live in a list (LPUSH/BRPOP, FIFO); retries wait in a sorted set
    scored by due time until `promote_due` moves them back.
    """

    def __init__(
        self,
        redis: Redis,
        name: str = "jobs",
        *,
        max_attempts: int = 1,
        retry_base_seconds: int = 5,
        retry_max_seconds: int = 300,
        dedupe_ttl_seconds: int = 24 * 60 * 60,
    ):
        self.redis = redis
        self.name = name
        self.max_attempts = max(int(max_attempts), 1)
        self.retry_base_seconds = retry_base_seconds
        self.retry_max_seconds = retry_max_seconds
        self.dedupe_ttl_seconds = dedupe_ttl_seconds

    @classmethod
    def from_settings(cls, redis: Redis, settings: Settings) -> "JobQueue":
        return cls(
            redis,
            settings.queue_name,
            max_attempts=settings.job_max_attempts,
            retry_base_seconds=settings.retry_base_seconds,
            retry_max_seconds=settings.retry_max_seconds,
            dedupe_ttl_seconds=settings.queue_dedupe_ttl_seconds,
        )

    @property
    def ready_key(self) -> str:
        return f"{self.name}:ready"

    @property
    def delayed_key(self) -> str:
        return f"{self.name}:delayed"

    def _seen_key(self, job_id: str) -> str:
        return f"{self.name}:seen:{job_id}"

    async def enqueue(self, job: QueuedJob) -> bool:
        first = await self.redis.set(self._seen_key(job.job_id), "1", nx=True, ex=self.dedupe_ttl_seconds)
        if not first:
            logger.info("job_enqueue_duplicate", extra={"job_id": job.job_id, "job_type": job.type})
            return False
        await self.redis.lpush(self.ready_key, job.to_json())
        logger.info("job_enqueued", extra={"job_id": job.job_id, "job_type": job.type})
        return True

    async def dequeue(self, timeout: int = 5) -> QueuedJob | None:
        item = await self.redis.brpop([self.ready_key], timeout=timeout)
        if not item:
            return None
        _, raw = item
        try:
            return QueuedJob.from_json(raw)
        except ValueError:
            logger.exception("job_dequeue_malformed", extra={"raw": str(raw)[:200]})
            return None

    async def schedule_retry(self, job: QueuedJob) -> bool:
        if job.attempt >= self.max_attempts:
            return False
        delay = retry_delay_seconds(job.attempt, self.retry_base_seconds, self.retry_max_seconds)
        next_job = replace(job, attempt=job.attempt + 1)
        await self.redis.zadd(self.delayed_key, {next_job.to_json(): time.time() + delay})
        logger.info(
            "job_retry_scheduled",
            extra={"job_id": job.job_id, "attempt": next_job.attempt, "delay_seconds": delay},
        )
        return True

    async def promote_due(self, *, limit: int = 100) -> int:
        due = await self.redis.zrangebyscore(self.delayed_key, "-inf", time.time(), start=0, num=limit)
        promoted = 0
        for raw in due:
            # Only the caller that removes the item pushes it.
            if await self.redis.zrem(self.delayed_key, raw):
                await self.redis.lpush(self.ready_key, raw)
                promoted += 1
        return promoted

    async def close(self) -> None:
        await self.redis.aclose()
