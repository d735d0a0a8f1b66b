from __future__ import annotations

from typing import Any

from hirepipe.core.datetime_utils import isoformat_z
from hirepipe.core.errors import UpstreamError
from hirepipe.jobs.handlers import require_fields
from hirepipe.jobs.registry import HandlerResult, JobContext
from hirepipe.services.scoring import ScoringAggregator


async def handle_scoring_generate(payload: dict[str, Any], ctx: JobContext) -> HandlerResult:
    missing = require_fields(payload, "candidateId", "assessmentId")
    if missing:
        return HandlerResult.failed(missing, error_code="invalid_payload")

    aggregator = ScoringAggregator(ctx.session, ctx.llm, max_tokens=ctx.settings.scoring_max_tokens)
    try:
        score = await aggregator.score(payload["candidateId"], payload["assessmentId"])
    except UpstreamError as exc:
        return HandlerResult.failed(exc.detail, error_code=exc.reason)

    return HandlerResult.ok(
        {
            "scoreId": score.id,
            "candidateId": score.candidate_id,
            "assessmentId": score.assessment_id,
            "overallScore": score.overall_score,
            "flags": score.meta.get("flags", []),
            "generatedAt": isoformat_z(score.scored_at),
        }
    )
