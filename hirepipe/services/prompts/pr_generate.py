from __future__ import annotations

from typing import Sequence

from hirepipe.services.prompts import format_tech_stack

ISSUE_CATEGORIES = ("bug", "security", "style", "logic", "performance")
ISSUE_SEVERITIES = ("high", "medium", "low")

_SHAPE = """{
  "title": "PR title string",
  "description": "PR description in markdown format",
  "files": [
    {
      "path": "src/path/to/file.ext",
      "language": "python",
      "content": "full file content as a string",
      "diff": "unified diff showing only the changes"
    }
  ],
  "issues": [
    {
      "file": "src/path/to/file.ext",
      "line": 42,
      "category": "bug",
      "severity": "high",
      "description": "Short internal note describing the issue"
    }
  ]
}"""


def build_pr_generate_prompt(*, role: str, tech_stack: Sequence[str], description: str) -> str:
    categories = ", ".join(f'"{item}"' for item in ISSUE_CATEGORIES)
    severities = ", ".join(f'"{item}"' for item in ISSUE_SEVERITIES)
    return f"""You are an expert software engineer preparing a realistic pull request for a code review exercise. The candidate under evaluation works as a {role} with a tech stack of {format_tech_stack(tech_stack)}.

## Context
{description}

## Instructions
Write a realistic pull request of the kind a junior-to-mid-level developer might open. The PR must:

1. Touch 3-5 files with realistic paths and content for the tech stack.
2. Carry a clear title and a description of the feature or fix.
3. Hide 4-6 intentional issues spread over these categories:
   - **Bug**: incorrect behavior such as an off-by-one or a missing null check
   - **Security**: a vulnerability such as injection or exposed secrets
   - **Style**: readability problems such as magic numbers or poor names
   - **Logic**: flawed business rules or a missed edge case
   - **Performance**: an inefficiency such as an N+1 query

Each issue should need a careful read to spot, yet be catchable by a competent engineer.

Respond with ONLY valid JSON in exactly this shape (no markdown, no explanation):
{_SHAPE}

JSON requirements:
- "files" has 3-5 entries and "issues" has 4-6 entries
- every issue category is one of: {categories}
- every issue severity is one of: {severities}
- "diff" is a valid unified diff and file content is syntactically valid
- issues reference real lines of the file content"""
