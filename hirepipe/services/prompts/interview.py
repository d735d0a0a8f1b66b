from __future__ import annotations

from typing import Any, Sequence

from hirepipe.services.prompts import format_tech_stack, rubric_criteria

ANSWER_ONLY = (
    "Respond with ONLY the interview question text. "
    "Do not include numbering, labels, or any meta-commentary."
)
SYNTHESIS_HINT = (
    "This is one of the final questions. Make it a synthesis question that ties "
    "together multiple concepts discussed earlier."
)


def format_rubric(rubric: Any) -> str:
    criteria = rubric_criteria(rubric)
    if criteria is None:
        return "No rubric criteria available."
    lines = []
    for criterion in criteria:
        name = criterion.get("name") or "Unknown"
        weight = criterion.get("weight") or 0
        description = criterion.get("description") or ""
        lines.append(f"- **{name}** (weight: {weight}): {description}")
    return "\n".join(lines)


def format_conversation(conversation: Sequence[dict[str, Any]]) -> str:
    if not conversation:
        return "No previous conversation."
    turns = []
    for message in conversation:
        speaker = "Interviewer" if message.get("role") == "interviewer" else "Candidate"
        turns.append(f"**{speaker}**: {message.get('content', '')}")
    return "\n\n".join(turns)


def build_first_question_prompt(
    *,
    role: str,
    tech_stack: Sequence[str],
    rubric: Any,
    total_questions: int,
) -> str:
    return f"""You are an expert technical interviewer running an adaptive interview for a {role} position.

## Context
- **Role**: {role}
- **Tech Stack**: {format_tech_stack(tech_stack)}
- **Total Questions**: {total_questions}
- **Current Question**: 1 of {total_questions}

## Evaluation Rubric
{format_rubric(rubric)}

## Instructions
Write the first interview question. It is a warm-up question that:
- Explores the candidate's background with the listed tech stack
- Is open-ended enough to reveal depth of knowledge
- Sets a welcoming but professional tone

{ANSWER_ONLY}"""


def build_follow_up_prompt(
    *,
    role: str,
    tech_stack: Sequence[str],
    rubric: Any,
    question_number: int,
    total_questions: int,
    conversation: Sequence[dict[str, Any]],
) -> str:
    """Prompt for question `question_number`, conditioned on the whole transcript."""
    closing = SYNTHESIS_HINT if question_number >= total_questions - 1 else ""
    return f"""You are an expert technical interviewer running an adaptive interview for a {role} position.

## Context
- **Role**: {role}
- **Tech Stack**: {format_tech_stack(tech_stack)}
- **Question**: {question_number} of {total_questions}

## Evaluation Rubric
{format_rubric(rubric)}

## Conversation So Far
{format_conversation(conversation)}

## Instructions
Using the candidate's previous answers, write the next interview question. Consider:
- Where the candidate showed strength or weakness
- Rubric topics not yet covered
- Raising the difficulty as the interview advances
- Probing deeper when an answer was shallow
- Moving to a new rubric area when the candidate showed mastery

{closing}

{ANSWER_ONLY}"""
