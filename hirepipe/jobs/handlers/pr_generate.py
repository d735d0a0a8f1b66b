from __future__ import annotations

from typing import Any

from hirepipe.core.datetime_utils import isoformat_z, utcnow
from hirepipe.core.errors import FatalError, UpstreamError
from hirepipe.core.state_machine import PR_EXERCISE_GRAPH, PrExerciseStatus, ensure_transition
from hirepipe.jobs.handlers import require_fields
from hirepipe.jobs.registry import HandlerResult, JobContext
from hirepipe.models.assessment import Assessment
from hirepipe.models.pr_exercise import PrExercise
from hirepipe.services.llm import parse_json_response
from hirepipe.services.prompts.pr_generate import build_pr_generate_prompt


async def handle_pr_generate(payload: dict[str, Any], ctx: JobContext) -> HandlerResult:
    missing = require_fields(payload, "assessmentId", "candidateId", "exerciseId")
    if missing:
        return HandlerResult.failed(missing, error_code="invalid_payload")
    assessment_id = payload["assessmentId"]
    exercise_id = payload["exerciseId"]

    assessment = await ctx.session.get(Assessment, assessment_id)
    if assessment is None:
        raise FatalError(f"Assessment {assessment_id} not found")
    exercise = await ctx.session.get(PrExercise, exercise_id)
    if exercise is None:
        raise FatalError(f"PR exercise {exercise_id} not found")
    if exercise.status == PrExerciseStatus.SUBMITTED:
        return HandlerResult.failed("PR exercise already submitted", error_code="already_submitted")

    prompt = build_pr_generate_prompt(
        role=assessment.role,
        tech_stack=assessment.tech_stack,
        description=assessment.description or f"Code review exercise for {assessment.title}",
    )
    try:
        text = await ctx.llm.generate(prompt, max_tokens=ctx.settings.pr_generate_max_tokens)
        pr_data = parse_json_response(text, "PR data")
    except UpstreamError as exc:
        return HandlerResult.failed(exc.detail, error_code=exc.reason)
    if not isinstance(pr_data, dict):
        return HandlerResult.failed("Failed to parse PR data JSON from Claude response", error_code="bad_llm_json")

    # Written together: the artifact never appears without the Ready flip.
    exercise.generated_data = pr_data
    if exercise.status == PrExerciseStatus.GENERATING:
        ensure_transition(PR_EXERCISE_GRAPH, exercise.status, PrExerciseStatus.READY, entity="pr_exercise")
        exercise.status = PrExerciseStatus.READY

    return HandlerResult.ok(
        {
            "exerciseId": exercise_id,
            "assessmentId": assessment_id,
            "candidateId": payload["candidateId"],
            "generatedAt": isoformat_z(utcnow()),
        }
    )
