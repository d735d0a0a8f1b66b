"""Phase operations feeding the worker path with the production handler registry."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import func, select

from hirepipe.core.errors import FatalError
from hirepipe.core.state_machine import AssessmentStatus, JobStatus, PrExerciseStatus
from hirepipe.jobs.dispatcher import JobDispatcher
from hirepipe.jobs.handlers import build_registry
from hirepipe.jobs.handlers.rubric import handle_rubric_generate
from hirepipe.jobs.ledger import JobLedger
from hirepipe.jobs.registry import JobContext
from hirepipe.models import Assessment, Job, PrExercise, Score
from hirepipe.schemas.assessment import AssessmentCreate
from hirepipe.services import assessments
from hirepipe.services.pr_review import PrReviewService
from tests.factories import PR_DATA, RUBRIC, FakeQueue, ScriptedLLM, make_assessment, make_candidate


def _dispatcher(sessionmaker, llm, settings) -> JobDispatcher:
    return JobDispatcher(sessionmaker, JobLedger(sessionmaker), build_registry(), llm, settings)


async def test_rubric_generation_job(sessionmaker, settings, queue):
    llm = ScriptedLLM({"criteria": RUBRIC})
    async with sessionmaker() as session:
        data = AssessmentCreate(title="Platform", role="SRE", tech_stack=["Go"], generate_rubric=True)
        assessment, job = await assessments.create_assessment(session, queue, data)
        assert assessment.status == AssessmentStatus.DRAFT
        assert assessment.rubric == []

    result = await _dispatcher(sessionmaker, llm, settings).process(queue.enqueued[0])

    assert result.success, result.error
    assert result.data["criteria"] == 2
    async with sessionmaker() as session:
        assert (await session.get(Assessment, assessment.id)).rubric == RUBRIC
        stored = await session.get(Job, job.id)
        assert stored.status == JobStatus.COMPLETED
        assert stored.attempts == 1


async def test_rubric_enqueue_failure_leaves_no_assessment(sessionmaker):
    queue = FakeQueue(fail_with=RedisConnectionError("redis down"))
    async with sessionmaker() as session:
        data = AssessmentCreate(title="Platform", role="SRE", generate_rubric=True)
        with pytest.raises(RedisConnectionError):
            await assessments.create_assessment(session, queue, data)

    async with sessionmaker() as session:
        assert (await session.execute(select(func.count()).select_from(Assessment))).scalar_one() == 0
        assert (await session.execute(select(func.count()).select_from(Job))).scalar_one() == 0


async def test_rubric_handler_rejects_shapeless_reply(db_session, settings, assessment):
    ctx = JobContext(db_session, ScriptedLLM({"levels": []}), settings)

    result = await handle_rubric_generate({"assessmentId": assessment.id}, ctx)

    assert result.error_code == "bad_llm_json"
    assert assessment.rubric == RUBRIC


async def test_rubric_handler_missing_assessment(db_session, settings, llm):
    with pytest.raises(FatalError):
        await handle_rubric_generate({"assessmentId": "gone"}, JobContext(db_session, llm, settings))


async def test_pr_generation_job_makes_exercise_ready(sessionmaker, settings, queue):
    async with sessionmaker() as session:
        candidate = await make_candidate(session, await make_assessment(session))
        started = await PrReviewService(session, queue).start(candidate)

    result = await _dispatcher(sessionmaker, ScriptedLLM(PR_DATA), settings).process(queue.enqueued[0])

    assert result.success
    async with sessionmaker() as session:
        exercise = await session.get(PrExercise, started.exercise_id)
        assert exercise.status == PrExerciseStatus.READY
        assert exercise.generated_data["title"] == PR_DATA["title"]
        job = await session.get(Job, started.job_id)
        assert job.status == JobStatus.COMPLETED
        assert job.result["exerciseId"] == started.exercise_id


async def test_bad_pr_reply_fails_job_and_keeps_generating(sessionmaker, settings, queue):
    async with sessionmaker() as session:
        candidate = await make_candidate(session, await make_assessment(session))
        started = await PrReviewService(session, queue).start(candidate)

    result = await _dispatcher(sessionmaker, ScriptedLLM("no json here"), settings).process(queue.enqueued[0])

    assert not result.success
    async with sessionmaker() as session:
        job = await session.get(Job, started.job_id)
        assert job.status == JobStatus.FAILED
        assert job.error == "Failed to parse PR data JSON from Claude response"
        exercise = await session.get(PrExercise, started.exercise_id)
        assert exercise.status == PrExerciseStatus.GENERATING


async def test_scoring_job_persists_score(sessionmaker, settings, queue):
    async with sessionmaker() as session:
        candidate = await make_candidate(session, await make_assessment(session))
        job = await assessments.request_scoring(session, queue, candidate.assessment_id, candidate.id)

    llm = ScriptedLLM({"interview_score": 90, "reasoning": "No evidence", "flags": []})
    result = await _dispatcher(sessionmaker, llm, settings).process(queue.enqueued[0])

    assert result.success
    assert result.data["overallScore"] is None
    assert result.data["flags"] == ["insufficient-evidence"]
    async with sessionmaker() as session:
        stored = await session.get(Score, result.data["scoreId"])
        assert stored.candidate_id == candidate.id
        assert (await session.get(Job, job.id)).status == JobStatus.COMPLETED
