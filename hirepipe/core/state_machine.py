from __future__ import annotations

from enum import Enum
from typing import Iterable, Mapping, TypeVar

from hirepipe.core.errors import ConflictError


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class CandidateStatus(str, Enum):
    INVITED = "invited"
    INTERVIEWING = "interviewing"
    INTERVIEW_COMPLETE = "interview_complete"
    PR_REVIEW = "pr_review"
    PR_REVIEW_COMPLETE = "pr_review_complete"
    COMPLETED = "completed"


class InterviewStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PrExerciseStatus(str, Enum):
    GENERATING = "generating"
    READY = "ready"
    SUBMITTED = "submitted"


class AssessmentStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


S = TypeVar("S", bound=Enum)


# Explicit state diagrams: each key can only move to the listed next states.
JOB_GRAPH: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING, JobStatus.FAILED}),
    JobStatus.RUNNING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}

INTERVIEW_GRAPH: dict[InterviewStatus, frozenset[InterviewStatus]] = {
    InterviewStatus.PENDING: frozenset({InterviewStatus.IN_PROGRESS, InterviewStatus.COMPLETED}),
    InterviewStatus.IN_PROGRESS: frozenset({InterviewStatus.COMPLETED}),
    InterviewStatus.COMPLETED: frozenset(),
}

PR_EXERCISE_GRAPH: dict[PrExerciseStatus, frozenset[PrExerciseStatus]] = {
    PrExerciseStatus.GENERATING: frozenset({PrExerciseStatus.READY}),
    PrExerciseStatus.READY: frozenset({PrExerciseStatus.SUBMITTED}),
    PrExerciseStatus.SUBMITTED: frozenset(),
}

# Phases may be taken in either order, so both phase entries are reachable
# from the invitation and from the other phase's completion.
CANDIDATE_GRAPH: dict[CandidateStatus, frozenset[CandidateStatus]] = {
    CandidateStatus.INVITED: frozenset({CandidateStatus.INTERVIEWING, CandidateStatus.PR_REVIEW}),
    CandidateStatus.INTERVIEWING: frozenset({CandidateStatus.INTERVIEW_COMPLETE}),
    CandidateStatus.INTERVIEW_COMPLETE: frozenset({CandidateStatus.PR_REVIEW, CandidateStatus.COMPLETED}),
    CandidateStatus.PR_REVIEW: frozenset({CandidateStatus.PR_REVIEW_COMPLETE}),
    CandidateStatus.PR_REVIEW_COMPLETE: frozenset({CandidateStatus.INTERVIEWING, CandidateStatus.COMPLETED}),
    CandidateStatus.COMPLETED: frozenset(),
}

ACTIVE_INTERVIEW_STATUSES: frozenset[InterviewStatus] = frozenset(
    {InterviewStatus.PENDING, InterviewStatus.IN_PROGRESS}
)


def _coerce(graph: Mapping[S, frozenset[S]], value: S | str | None) -> S | None:
    if value is None:
        return None
    enum_type = type(next(iter(graph)))
    try:
        return enum_type(value)
    except ValueError:
        return None


def is_terminal(graph: Mapping[S, frozenset[S]], status: S | str | None) -> bool:
    normalized = _coerce(graph, status)
    return normalized is not None and not graph[normalized]


def terminal_states(graph: Mapping[S, frozenset[S]]) -> frozenset[S]:
    return frozenset(state for state, targets in graph.items() if not targets)


def can_transition(
    graph: Mapping[S, frozenset[S]],
    from_status: S | str | None,
    to_status: S | str | None,
) -> bool:
    from_normalized = _coerce(graph, from_status)
    to_normalized = _coerce(graph, to_status)
    if from_normalized is None or to_normalized is None:
        return False
    if from_normalized == to_normalized:
        return False
    return to_normalized in graph[from_normalized]


def ensure_transition(
    graph: Mapping[S, frozenset[S]],
    from_status: S | str | None,
    to_status: S | str,
    *,
    entity: str,
) -> None:
    if not can_transition(graph, from_status, to_status):
        from_label = getattr(from_status, "value", from_status)
        to_label = getattr(to_status, "value", to_status)
        raise ConflictError(
            f"Invalid {entity} transition from '{from_label}' to '{to_label}'.",
            reason="invalid_transition",
        )


def sources_of(graph: Mapping[S, frozenset[S]], to_status: S) -> frozenset[S]:
    """States with an edge into `to_status`."""
    return frozenset(state for state, targets in graph.items() if to_status in targets)


def path_is_valid(graph: Mapping[S, frozenset[S]], path: Iterable[S | str]) -> bool:
    items = list(path)
    if len(items) < 2:
        return False
    for index in range(len(items) - 1):
        if not can_transition(graph, items[index], items[index + 1]):
            return False
    return True
