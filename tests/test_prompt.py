"""PromptManager tests — verify analysis prompt rendering.

Tests render the system and analysis templates directly (no DB needed)
and check the output contains the transcript, the six traits, and the JSON
structure the analysis parser expects.
"""

import json
import re

import pytest

from umoja_assessment.constants import TRAIT_NAMES
from umoja_assessment.prompt import PromptManager


@pytest.fixture
def pm():
    """Fresh PromptManager for each test."""
    return PromptManager()


class TestSystemPrompt:

    def test_role_and_json_only(self, pm):
        text = pm.render_system()
        assert "expert educational psychologist" in text
        assert "middle school student" in text
        assert "valid JSON object" in text

    def test_audience_override(self, pm):
        assert "high school student" in pm.render_system("high school student")


class TestAnalysisPrompt:

    def test_transcript_lines_in_order(self, pm):
        lines = [
            'In bucket "A", to question "Q1", the user answered: "x"',
            'In bucket "B", to question "Q2", the user answered: "y"',
        ]
        text = pm.render_analysis(lines)
        assert text.startswith("Here are the student's assessment answers:")
        first, second = text.index(lines[0]), text.index(lines[1])
        assert first < second, "Transcript lines should keep their order"
        assert f"{lines[0]}\n{lines[1]}\n" in text, "One answer per line"

    def test_lists_every_trait_once(self, pm):
        text = pm.render_analysis(["line"])
        for trait in TRAIT_NAMES:
            assert text.count(f'"trait": "{trait}"') == 1, f"{trait} missing or duplicated"

    def test_trait_entries_are_comma_separated(self, pm):
        text = pm.render_analysis(["line"])
        entries = re.findall(r'\{ "trait": .*? \}(,?)', text)
        assert entries == [","] * (len(TRAIT_NAMES) - 1) + [""], (
            "All trait entries but the last should end with a comma"
        )

    def test_requests_all_profile_fields(self, pm):
        text = pm.render_analysis(["line"])
        for key in (
            "personality_summary",
            "learning_style",
            "trait_scores",
            "strengths",
            "areas_for_growth",
            "pod_recommendation",
            "fullMark",
        ):
            assert f'"{key}"' in text

    def test_tojson_filter_escapes_quotes(self, pm):
        assert pm._env.filters["tojson"]('say "hi"') == json.dumps('say "hi"')
