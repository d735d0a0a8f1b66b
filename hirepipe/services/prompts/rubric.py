from __future__ import annotations

from typing import Sequence

from hirepipe.services.prompts import format_tech_stack

_SHAPE = """{
  "criteria": [
    {
      "name": "string",
      "description": "string",
      "weight": 0.0,
      "levels": [
        { "score": 1, "label": "string", "description": "string" },
        { "score": 2, "label": "string", "description": "string" },
        { "score": 3, "label": "string", "description": "string" },
        { "score": 4, "label": "string", "description": "string" },
        { "score": 5, "label": "string", "description": "string" }
      ]
    }
  ]
}"""


def build_rubric_prompt(*, title: str, role: str, description: str, tech_stack: Sequence[str]) -> str:
    return f"""You are an expert technical hiring assessor. Produce a structured scoring rubric for candidates applying to the role below.

## Role Details
- **Title**: {title}
- **Role**: {role}
- **Description**: {description}
- **Tech Stack**: {format_tech_stack(tech_stack)}

## Instructions
Write a JSON rubric with criteria tailored to this role. Every criterion has a name, a description of what it evaluates, a decimal weight (weights sum to 1.0) and five scoring levels, 1 to 5, each with a label and description.

Cover at least:
1. Technical knowledge of the listed tech stack
2. Problem solving and system design
3. Code quality and engineering practice
4. Communication and collaboration
5. Competencies specific to the role description

Respond with ONLY valid JSON in exactly this shape (no markdown, no explanation):
{_SHAPE}"""
