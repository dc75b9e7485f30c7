"""
Tests for the prompt-driven AI reviewer.
"""

import asyncio
import json

import pytest

from codereview.domain.models.review import Category, Severity
from codereview.domain.services.ai_reviewer import (
    AI_RULE_ID,
    PromptedAIReviewer,
    TextGenerator,
    normalize_category,
    normalize_severity,
)


class CannedGenerator(TextGenerator):
    """TextGenerator returning a fixed response and recording prompts."""

    def __init__(self, response):
        self.response = response
        self.prompts = []

    async def generate(self, prompt, max_tokens, temperature):
        self.prompts.append(prompt)
        return self.response


FINDINGS = [
    {
        "line": 3,
        "message": "Unvalidated input reaches the shell",
        "severity": "HIGH",
        "category": "Security",
        "suggestion": "Use subprocess with a list of arguments",
    },
    {"line": 0, "message": "Missing docstring", "severity": "minor", "category": "docs"},
]


class TestNormalization:
    """Test suite for severity and category normalization."""

    @pytest.mark.parametrize("value,expected", [
        ("critical", Severity.CRITICAL),
        ("HIGH", Severity.HIGH),
        ("Low priority", Severity.LOW),
        ("info", Severity.INFO),
        ("severe", Severity.MEDIUM),
        (None, Severity.MEDIUM),
    ])
    def test_normalize_severity(self, value, expected):
        assert normalize_severity(value) is expected

    @pytest.mark.parametrize("value,expected", [
        ("Security", Category.SECURITY),
        ("best practice", Category.BEST_PRACTICE),
        ("bug risk", Category.BUG_RISK),
        ("documentation", Category.DOCUMENTATION),
        ("something else", Category.BEST_PRACTICE),
    ])
    def test_normalize_category(self, value, expected):
        assert normalize_category(value) is expected


class TestParseResponse:
    """Test suite for PromptedAIReviewer.parse_response."""

    @pytest.fixture
    def reviewer(self):
        return PromptedAIReviewer(CannedGenerator("[]"))

    def test_parses_json_embedded_in_prose(self, reviewer):
        response = "Here is what I found:\n```json\n" + json.dumps(FINDINGS) + "\n```\nDone."

        issues = reviewer.parse_response(response, "app.py", "python")

        assert len(issues) == 2
        first = issues[0]
        assert first.line == 3
        assert first.severity is Severity.HIGH
        assert first.category is Category.SECURITY
        assert first.rule_id == AI_RULE_ID
        assert first.confidence == 0.7
        assert first.tags == ("ai-generated", "python")
        assert first.metadata == {"source": "ai"}

    def test_line_is_clamped_to_one(self, reviewer):
        issues = reviewer.parse_response(json.dumps(FINDINGS), "app.py", "python")

        assert issues[1].line == 1
        assert issues[1].severity is Severity.MEDIUM
        assert issues[1].category is Category.DOCUMENTATION

    def test_invalid_json_returns_nothing(self, reviewer):
        assert reviewer.parse_response("I could not review this file.", "app.py", "python") == []

    def test_non_list_returns_nothing(self, reviewer):
        assert reviewer.parse_response('{"line": 1}', "app.py", "python") == []

    def test_malformed_entries_are_skipped(self, reviewer):
        response = json.dumps([
            "not an object",
            {"line": "twelve", "message": "Bad line"},
            {"line": 2, "message": "Fine"},
        ])

        issues = reviewer.parse_response(response, "app.py", "python")

        assert [i.message for i in issues] == ["Fine"]


class TestPromptedAIReviewer:
    """Test suite for prompting and caching."""

    def test_review_file_uses_generator(self):
        generator = CannedGenerator(json.dumps(FINDINGS))
        reviewer = PromptedAIReviewer(generator)

        issues = asyncio.run(reviewer.review_file("app.py", "import os\n", "python"))

        assert len(issues) == 2
        assert len(generator.prompts) == 1
        assert "```python" in generator.prompts[0]
        assert "from file: app.py" in generator.prompts[0]

    def test_responses_are_cached(self):
        generator = CannedGenerator(json.dumps(FINDINGS))
        reviewer = PromptedAIReviewer(generator)

        asyncio.run(reviewer.review_file("app.py", "import os\n", "python"))
        asyncio.run(reviewer.review_file("app.py", "import os\n", "python"))
        asyncio.run(reviewer.review_file("app.py", "import sys\n", "python"))

        assert len(generator.prompts) == 2
        assert reviewer.get_cache_stats() == {"size": 2}

        reviewer.clear_cache()
        assert reviewer.get_cache_stats() == {"size": 0}

    def test_cache_drops_least_recently_used(self):
        generator = CannedGenerator(json.dumps(FINDINGS))
        reviewer = PromptedAIReviewer(generator, cache_size=2)

        def review(content):
            asyncio.run(reviewer.review_file("app.py", content, "python"))

        review("a = 1\n")
        review("b = 1\n")
        review("a = 1\n")
        review("c = 1\n")
        assert len(generator.prompts) == 3
        assert reviewer.get_cache_stats() == {"size": 2}

        review("a = 1\n")
        assert len(generator.prompts) == 3
        review("b = 1\n")
        assert len(generator.prompts) == 4

    def test_cache_key_depends_on_path_and_content(self):
        key = PromptedAIReviewer.cache_key("a.py", "x")

        assert key == PromptedAIReviewer.cache_key("a.py", "x")
        assert key != PromptedAIReviewer.cache_key("b.py", "x")
        assert key != PromptedAIReviewer.cache_key("a.py", "y")

    def test_prompt_lists_existing_issues(self):
        reviewer = PromptedAIReviewer(CannedGenerator("[]"), max_context_issues=1)
        existing = reviewer.parse_response(json.dumps(FINDINGS), "app.py", "python")

        prompt = reviewer.build_prompt("app.py", "import os\n", "python", existing)

        assert "Issues already found by static analysis:" in prompt
        assert "- Unvalidated input reaches the shell (high)" in prompt
        assert "Missing docstring" not in prompt
