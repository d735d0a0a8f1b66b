import json
from typing import Any

from hirepipe.core.errors import UpstreamError
from hirepipe.core.state_machine import AssessmentStatus, CandidateStatus
from hirepipe.jobs.queue import QueuedJob
from hirepipe.models import Assessment, Candidate
from hirepipe.services.assessments import new_access_token


class ScriptedLLM:
    """Returns canned replies in order and records every prompt."""

    def __init__(self, *replies: Any):
        self.replies = list(replies)
        self.prompts: list[str] = []
        self.max_tokens: list[int] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def push(self, *replies: Any) -> None:
        self.replies.extend(replies)

    async def generate(self, prompt: str, *, max_tokens: int) -> str:
        self.prompts.append(prompt)
        self.max_tokens.append(max_tokens)
        if not self.replies:
            raise AssertionError("ScriptedLLM ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, (dict, list)):
            return json.dumps(reply)
        return reply


class FakeQueue:
    def __init__(self, *, fail_with: Exception | None = None, max_attempts: int = 1):
        self.fail_with = fail_with
        self.max_attempts = max_attempts
        self.name = "test-jobs"
        self.enqueued: list[QueuedJob] = []
        self.retries: list[QueuedJob] = []

    async def enqueue(self, job: QueuedJob) -> bool:
        if self.fail_with is not None:
            raise self.fail_with
        self.enqueued.append(job)
        return True

    async def schedule_retry(self, job: QueuedJob) -> bool:
        if job.attempt >= self.max_attempts:
            return False
        self.retries.append(job)
        return True


RUBRIC = [
    {"name": "Python", "description": "Language depth", "weight": 0.6},
    {"name": "Communication", "description": "Clarity of answers", "weight": 0.4},
]


async def make_assessment(session, **overrides) -> Assessment:
    values = {
        "title": "Backend Engineer",
        "role": "Backend Engineer",
        "description": "Build APIs",
        "rubric": RUBRIC,
        "config": {"tech_stack": ["Python", "PostgreSQL"]},
        "status": AssessmentStatus.ACTIVE,
    }
    values.update(overrides)
    assessment = Assessment(**values)
    session.add(assessment)
    await session.commit()
    return assessment


async def make_candidate(session, assessment: Assessment, **overrides) -> Candidate:
    values = {
        "assessment_id": assessment.id,
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "access_token": new_access_token(),
        "status": CandidateStatus.INVITED,
    }
    values.update(overrides)
    candidate = Candidate(**values)
    session.add(candidate)
    await session.commit()
    return candidate


def upstream_failure() -> UpstreamError:
    return UpstreamError("No text response from Claude", reason="no_text_response")


PR_DATA = {
    "title": "Add order export endpoint",
    "description": "Exports orders as CSV.",
    "files": [
        {
            "path": "app/orders.py",
            "language": "python",
            "content": "def export(db):\n    return db.execute('SELECT * FROM orders WHERE id=' + oid)\n",
            "diff": "+def export(db):\n+    return db.execute(...)\n",
        }
    ],
    "issues": [
        {
            "file": "app/orders.py",
            "line": 2,
            "category": "security",
            "severity": "high",
            "description": "SQL injection",
            "explanation": "String concatenation builds the query.",
        }
    ],
}
