import unittest

from hirepipe.services.prompts import format_tech_stack, rubric_criteria
from hirepipe.services.prompts.interview import (
    SYNTHESIS_HINT,
    build_first_question_prompt,
    build_follow_up_prompt,
    format_conversation,
    format_rubric,
)
from hirepipe.services.prompts.pr_generate import build_pr_generate_prompt
from hirepipe.services.prompts.rubric import build_rubric_prompt
from hirepipe.services.prompts.scoring import SCORING_FLAGS, build_scoring_prompt
from hirepipe.services.scoring import COMPONENT_WEIGHTS

RUBRIC = [{"name": "Python", "description": "Language depth", "weight": 0.6}]


class PromptHelperTests(unittest.TestCase):
    def test_tech_stack_defaults_to_general(self):
        self.assertEqual(format_tech_stack([]), "general software engineering")
        self.assertEqual(format_tech_stack(None), "general software engineering")
        self.assertEqual(format_tech_stack(["Go", " ", "gRPC"]), "Go, gRPC")

    def test_rubric_shapes(self):
        self.assertEqual(rubric_criteria(RUBRIC), RUBRIC)
        self.assertEqual(rubric_criteria({"criteria": RUBRIC}), RUBRIC)
        self.assertIsNone(rubric_criteria(None))
        self.assertIsNone(rubric_criteria({"levels": []}))

    def test_format_rubric(self):
        self.assertEqual(format_rubric(RUBRIC), "- **Python** (weight: 0.6): Language depth")
        self.assertEqual(format_rubric(None), "No rubric criteria available.")

    def test_format_conversation(self):
        conversation = [
            {"role": "interviewer", "content": "Why asyncio?"},
            {"role": "candidate", "content": "IO-bound work."},
        ]
        self.assertEqual(
            format_conversation(conversation),
            "**Interviewer**: Why asyncio?\n\n**Candidate**: IO-bound work.",
        )
        self.assertEqual(format_conversation([]), "No previous conversation.")


class InterviewPromptTests(unittest.TestCase):
    def test_first_question_names_role_and_budget(self):
        prompt = build_first_question_prompt(role="SRE", tech_stack=["Kubernetes"], rubric=RUBRIC, total_questions=8)
        self.assertIn("SRE", prompt)
        self.assertIn("Kubernetes", prompt)
        self.assertIn("1 of 8", prompt)
        self.assertIn("**Python**", prompt)

    def test_synthesis_hint_only_near_the_end(self):
        def prompt_for(number):
            return build_follow_up_prompt(
                role="SRE",
                tech_stack=[],
                rubric=None,
                question_number=number,
                total_questions=8,
                conversation=[{"role": "candidate", "content": "answer"}],
            )

        self.assertNotIn(SYNTHESIS_HINT, prompt_for(2))
        self.assertNotIn(SYNTHESIS_HINT, prompt_for(6))
        self.assertIn(SYNTHESIS_HINT, prompt_for(7))
        self.assertIn(SYNTHESIS_HINT, prompt_for(8))
        self.assertIn("**Candidate**: answer", prompt_for(3))


class GenerationPromptTests(unittest.TestCase):
    def test_pr_prompt_uses_stack(self):
        prompt = build_pr_generate_prompt(role="Data Engineer", tech_stack=["Spark"], description="ETL jobs")
        self.assertIn("Data Engineer", prompt)
        self.assertIn("Spark", prompt)
        self.assertIn('"issues"', prompt)

    def test_rubric_prompt_lists_role_details(self):
        prompt = build_rubric_prompt(title="Platform", role="SRE", description="On-call", tech_stack=[])
        self.assertIn("**Title**: Platform", prompt)
        self.assertIn("general software engineering", prompt)

    def test_scoring_prompt_states_weights_and_flags(self):
        prompt = build_scoring_prompt(
            role="SRE",
            rubric=RUBRIC,
            interview_conversation=[],
            pr_issues=[],
            pr_comments=[],
            behavioral_signals=[],
            weights=COMPONENT_WEIGHTS,
        )
        self.assertIn("interview 40%", prompt)
        self.assertIn("PR review 35%", prompt)
        self.assertIn("behavioral 25%", prompt)
        for name, _ in SCORING_FLAGS:
            self.assertIn(f'"{name}"', prompt)
