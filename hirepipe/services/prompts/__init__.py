from __future__ import annotations

from typing import Any, Iterable

GENERAL_STACK = "general software engineering"


def format_tech_stack(tech_stack: Iterable[str] | None) -> str:
    items = [str(item).strip() for item in (tech_stack or []) if str(item).strip()]
    return ", ".join(items) if items else GENERAL_STACK


def rubric_criteria(rubric: Any) -> list[dict[str, Any]] | None:
    """Accept either a bare criteria list or a `{"criteria": [...]}` mapping."""
    if isinstance(rubric, dict):
        rubric = rubric.get("criteria")
    if not isinstance(rubric, list):
        return None
    return [item for item in rubric if isinstance(item, dict)]
