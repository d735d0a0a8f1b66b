from __future__ import annotations

import json
from typing import Any, Sequence

SCORING_FLAGS = (
    ("bot-suspected", "behavioral patterns suggest automated responses"),
    ("copy-paste-heavy", "excessive clipboard usage detected"),
    ("tab-switching-frequent", "candidate frequently left the assessment tab"),
    ("fast-responder", "responses came unusually quickly"),
    ("slow-responder", "responses took unusually long"),
    ("thorough-reviewer", "caught most or all PR issues"),
    ("surface-reviewer", "only caught obvious issues"),
    ("strong-communicator", "interview answers were clear and well-structured"),
    ("needs-depth", "answers lacked technical depth"),
)

_SHAPE = """{
  "interview_score": 85,
  "pr_review_score": 72,
  "behavioral_score": 90,
  "overall_score": 82.3,
  "reasoning": "Paragraph explaining the scores, strengths and areas for improvement.",
  "flags": ["thorough-reviewer", "strong-communicator"],
  "breakdown": {
    "interview": {"technical_knowledge": 80, "problem_solving": 85, "communication": 90, "notes": "string"},
    "pr_review": {"issues_found": 4, "issues_total": 6, "feedback_quality": 75, "security_awareness": 70, "notes": "string"},
    "behavioral": {"authenticity": 90, "engagement": 85, "notes": "string"}
  }
}"""


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def build_scoring_prompt(
    *,
    role: str,
    rubric: Any,
    interview_conversation: Sequence[dict[str, Any]],
    pr_issues: Sequence[dict[str, Any]],
    pr_comments: Sequence[dict[str, Any]],
    behavioral_signals: Sequence[dict[str, Any]],
    weights: dict[str, float],
) -> str:
    flags = "\n".join(f'   - "{name}": {meaning}' for name, meaning in SCORING_FLAGS)
    return f"""You are an expert technical hiring evaluator. Score a candidate for the role of {role} using all available assessment evidence.

## Scoring Rubric
{_dump(rubric)}

## Interview Transcript
{_dump(list(interview_conversation))}

## PR Review Exercise
The candidate reviewed a pull request containing intentional issues. The known issues are:
{_dump(list(pr_issues))}

The candidate's review comments:
{_dump(list(pr_comments))}

## Behavioral Signals
Passive observations collected during the assessment (typing rhythm, paste detection, tab focus, response timing):
{_dump(list(behavioral_signals))}

## Instructions
Score the candidate in three areas:

1. **interview_score (0-100)**: technical knowledge, problem solving, clarity and depth of answers. Set to null when there is no interview data.
2. **pr_review_score (0-100)**: how many known issues were found, feedback quality, attention to security, bug and logic issues. Set to null when there are no review comments.
3. **behavioral_score (0-100)**: authenticity of engagement. Watch for heavy pasting, suspiciously fast answers, frequent tab switching or irregular typing. Set to null when there are no signals.
4. **overall_score**: weighted composite with weights interview {weights["interview"]:.0%}, PR review {weights["pr_review"]:.0%}, behavioral {weights["behavioral"]:.0%}. Include only non-null components and rescale the remaining weights proportionally.
5. **flags**: notable observations, chosen from:
{flags}

Respond with ONLY valid JSON in exactly this shape (no markdown, no explanation):
{_SHAPE}"""
