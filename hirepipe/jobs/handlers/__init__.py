from __future__ import annotations

from typing import Any

from hirepipe.jobs.registry import HandlerRegistry

PR_GENERATE = "pr.generate"
RUBRIC_GENERATE = "rubric.generate"
SCORING_GENERATE = "scoring.generate"


def require_fields(payload: dict[str, Any], *names: str) -> str | None:
    """Return the failure message for the first missing payload field, if any."""
    for name in names:
        value = payload.get(name)
        if not isinstance(value, str) or not value.strip():
            return f"Missing {name} in payload"
    return None


def build_registry() -> HandlerRegistry:
    from hirepipe.jobs.handlers.pr_generate import handle_pr_generate
    from hirepipe.jobs.handlers.rubric import handle_rubric_generate
    from hirepipe.jobs.handlers.scoring import handle_scoring_generate

    registry = HandlerRegistry(
        {
            PR_GENERATE: handle_pr_generate,
            RUBRIC_GENERATE: handle_rubric_generate,
            SCORING_GENERATE: handle_scoring_generate,
        }
    )
    return registry.freeze()
