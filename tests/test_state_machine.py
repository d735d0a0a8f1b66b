from __future__ import annotations

import unittest

from hirepipe.core.errors import ConflictError
from hirepipe.core.state_machine import (
    CANDIDATE_GRAPH,
    INTERVIEW_GRAPH,
    JOB_GRAPH,
    PR_EXERCISE_GRAPH,
    CandidateStatus,
    InterviewStatus,
    JobStatus,
    PrExerciseStatus,
    can_transition,
    ensure_transition,
    is_terminal,
    path_is_valid,
    sources_of,
    terminal_states,
)

ALL_GRAPHS = (JOB_GRAPH, INTERVIEW_GRAPH, PR_EXERCISE_GRAPH, CANDIDATE_GRAPH)


class TransitionTableTests(unittest.TestCase):
    def test_graphs_are_closed_over_their_enum(self) -> None:
        for graph in ALL_GRAPHS:
            enum_type = type(next(iter(graph)))
            self.assertSetEqual(set(graph), set(enum_type))
            for targets in graph.values():
                self.assertTrue(targets <= set(enum_type))

    def test_terminal_states_have_no_outgoing_edges(self) -> None:
        self.assertSetEqual(terminal_states(JOB_GRAPH), {JobStatus.COMPLETED, JobStatus.FAILED})
        self.assertSetEqual(terminal_states(INTERVIEW_GRAPH), {InterviewStatus.COMPLETED})
        self.assertSetEqual(terminal_states(PR_EXERCISE_GRAPH), {PrExerciseStatus.SUBMITTED})
        self.assertSetEqual(terminal_states(CANDIDATE_GRAPH), {CandidateStatus.COMPLETED})
        for status in JobStatus:
            for target in JobStatus:
                if is_terminal(JOB_GRAPH, status):
                    self.assertFalse(can_transition(JOB_GRAPH, status, target))

    def test_job_moves_strictly_forward(self) -> None:
        self.assertTrue(path_is_valid(JOB_GRAPH, ["pending", "running", "completed"]))
        self.assertTrue(path_is_valid(JOB_GRAPH, ["pending", "running", "failed"]))
        self.assertTrue(can_transition(JOB_GRAPH, "pending", "failed"))
        self.assertFalse(can_transition(JOB_GRAPH, "completed", "failed"))
        self.assertFalse(can_transition(JOB_GRAPH, "failed", "completed"))
        self.assertFalse(can_transition(JOB_GRAPH, "running", "pending"))

    def test_pr_exercise_must_be_ready_before_submitted(self) -> None:
        self.assertFalse(can_transition(PR_EXERCISE_GRAPH, PrExerciseStatus.GENERATING, PrExerciseStatus.SUBMITTED))
        self.assertTrue(path_is_valid(PR_EXERCISE_GRAPH, ["generating", "ready", "submitted"]))

    def test_candidate_phases_in_either_order(self) -> None:
        self.assertTrue(
            path_is_valid(
                CANDIDATE_GRAPH,
                ["invited", "interviewing", "interview_complete", "pr_review", "pr_review_complete", "completed"],
            )
        )
        self.assertTrue(
            path_is_valid(
                CANDIDATE_GRAPH,
                ["invited", "pr_review", "pr_review_complete", "interviewing", "interview_complete", "completed"],
            )
        )
        self.assertFalse(can_transition(CANDIDATE_GRAPH, "completed", "interviewing"))
        self.assertFalse(can_transition(CANDIDATE_GRAPH, "interviewing", "invited"))

    def test_unknown_same_or_missing_states_are_rejected(self) -> None:
        self.assertFalse(can_transition(JOB_GRAPH, None, "running"))
        self.assertFalse(can_transition(JOB_GRAPH, "pending", "queued"))
        self.assertFalse(can_transition(JOB_GRAPH, "running", "running"))
        self.assertFalse(path_is_valid(JOB_GRAPH, ["pending"]))

    def test_ensure_transition_raises_conflict(self) -> None:
        ensure_transition(INTERVIEW_GRAPH, "in_progress", "completed", entity="interview")
        with self.assertRaises(ConflictError) as ctx:
            ensure_transition(INTERVIEW_GRAPH, "completed", "in_progress", entity="interview")
        self.assertEqual(ctx.exception.reason, "invalid_transition")
        self.assertEqual(ctx.exception.status_code, 409)

    def test_sources_of(self) -> None:
        self.assertSetEqual(sources_of(JOB_GRAPH, JobStatus.FAILED), {JobStatus.PENDING, JobStatus.RUNNING})
        self.assertSetEqual(sources_of(JOB_GRAPH, JobStatus.COMPLETED), {JobStatus.RUNNING})


if __name__ == "__main__":
    unittest.main()
