from __future__ import annotations

from typing import Any

from hirepipe.core.datetime_utils import isoformat_z, utcnow
from hirepipe.core.errors import FatalError, UpstreamError
from hirepipe.jobs.handlers import require_fields
from hirepipe.jobs.registry import HandlerResult, JobContext
from hirepipe.models.assessment import Assessment
from hirepipe.services.llm import parse_json_response
from hirepipe.services.prompts import rubric_criteria
from hirepipe.services.prompts.rubric import build_rubric_prompt


async def handle_rubric_generate(payload: dict[str, Any], ctx: JobContext) -> HandlerResult:
    missing = require_fields(payload, "assessmentId")
    if missing:
        return HandlerResult.failed(missing, error_code="invalid_payload")
    assessment_id = payload["assessmentId"]

    assessment = await ctx.session.get(Assessment, assessment_id)
    if assessment is None:
        raise FatalError(f"Assessment {assessment_id} not found")

    prompt = build_rubric_prompt(
        title=assessment.title,
        role=assessment.role,
        description=assessment.description or "",
        tech_stack=assessment.tech_stack,
    )
    try:
        text = await ctx.llm.generate(prompt, max_tokens=ctx.settings.rubric_max_tokens)
        reply = parse_json_response(text, "rubric")
    except UpstreamError as exc:
        return HandlerResult.failed(exc.detail, error_code=exc.reason)

    criteria = rubric_criteria(reply)
    if criteria is None:
        return HandlerResult.failed("Failed to parse rubric JSON from Claude response", error_code="bad_llm_json")
    assessment.rubric = criteria

    return HandlerResult.ok(
        {
            "assessmentId": assessment_id,
            "criteria": len(criteria),
            "generatedAt": isoformat_z(utcnow()),
        }
    )
