from hirepipe.models.assessment import Assessment
from hirepipe.models.behavioral_signal import SIGNAL_TYPES, BehavioralSignal
from hirepipe.models.candidate import Candidate
from hirepipe.models.event import CandidateEvent
from hirepipe.models.interview_session import InterviewSession, active_slot_for
from hirepipe.models.job import Job
from hirepipe.models.pr_exercise import PrExercise
from hirepipe.models.score import Score

__all__ = [
    "Assessment",
    "BehavioralSignal",
    "Candidate",
    "CandidateEvent",
    "InterviewSession",
    "Job",
    "PrExercise",
    "SIGNAL_TYPES",
    "Score",
    "active_slot_for",
]
